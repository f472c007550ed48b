"""Cluster operations"""

import logging

from esadmin_core.display import show_json, show_list, show_table
from esadmin_core.exceptions import InvalidInputError
from esadmin_core.registry import Param, command
from esadmin_core.utilities import recovery_rows

loggit = logging.getLogger("esadmin.operations.cluster")


@command("cluster", "health", "Cluster health")
def health(ctx):
    """Show cluster health."""
    show_json(ctx, ctx.es.cluster.health(), title="Cluster health")


@command("cluster", "state", "Cluster state")
def state(ctx):
    """Show the full cluster state."""
    show_json(ctx, ctx.es.cluster.state(), title="Cluster state")


@command("cluster", "settings", "Cluster settings")
def settings(ctx):
    """Show persistent and transient cluster settings."""
    show_json(ctx, ctx.es.cluster.get_settings(), title="Cluster settings")


@command(
    "cluster",
    "edit-settings",
    "Edit a cluster setting",
    params=(
        Param(
            "setting_type",
            "Setting type (persistent/transient)",
            default="persistent",
        ),
        Param("key", "Setting key (e.g. cluster.routing.allocation.enable)"),
        Param("value", "New value (null to reset)"),
    ),
    mutating=True,
)
def edit_settings(ctx, setting_type, key, value):
    """Set or reset one persistent or transient cluster setting."""
    if setting_type not in ("persistent", "transient"):
        raise InvalidInputError(
            f"Setting type must be persistent or transient, got {setting_type!r}"
        )
    body = {key: None if value == "null" else value}
    if not ctx.proceed(f"Set {setting_type} cluster setting {key}={value}"):
        return
    response = ctx.es.cluster.put_settings(**{setting_type: body})
    show_json(ctx, response, title="Updated cluster settings")


@command("cluster", "nodes-info", "Nodes info")
def nodes_info(ctx):
    """Show information about every node."""
    show_json(ctx, ctx.es.nodes.info(), title="Nodes info")


@command("cluster", "nodes-ids", "Node ids")
def nodes_ids(ctx):
    """List the full id of every node."""
    rows = ctx.es.cat.nodes(full_id=True, h="id", format="json")
    show_list(ctx, "Node ids", [row["id"] for row in rows])


@command("cluster", "nodes-settings", "Node log paths")
def nodes_settings(ctx):
    """Show the log path each node is configured with."""
    nodes = ctx.es.nodes.info(metric="settings").get("nodes", {})
    rows = []
    for node_id in sorted(nodes):
        node = nodes[node_id]
        logs = node.get("settings", {}).get("path", {}).get("logs", "")
        rows.append((node_id, node.get("name", ""), logs))
    show_table(ctx, "Node settings", ["Node id", "Name", "path.logs"], rows)


@command("cluster", "shards", "Shards and recovery")
def shards(ctx):
    """Show shard allocation, per-shard recovery progress and the recovery summary."""
    shard_rows = ctx.es.cat.shards(format="json")
    show_table(
        ctx,
        "Shards",
        ["Index", "Shard", "Prirep", "State", "Docs", "Store", "Node"],
        [
            (
                row.get("index"),
                row.get("shard"),
                row.get("prirep"),
                row.get("state"),
                row.get("docs") or "",
                row.get("store") or "",
                row.get("node") or "",
            )
            for row in shard_rows
        ],
    )
    show_table(
        ctx,
        "Recovery",
        ["Index", "Shard", "Stage", "Size %", "Files %"],
        recovery_rows(ctx.es.indices.recovery()),
    )
    summary = ctx.es.cat.recovery(format="json", active_only=True)
    loggit.debug("Active recoveries: %d", len(summary))
    show_table(
        ctx,
        "Active recoveries",
        ["Index", "Shard", "Stage", "Source", "Target", "Bytes %"],
        [
            (
                row.get("index"),
                row.get("shard"),
                row.get("stage"),
                row.get("source_node") or "",
                row.get("target_node") or "",
                row.get("bytes_percent") or "",
            )
            for row in summary
        ],
    )
