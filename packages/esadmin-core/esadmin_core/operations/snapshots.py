"""Snapshot operations"""

import logging

from esadmin_core.actions import Restore
from esadmin_core.display import show_json, show_list, show_table
from esadmin_core.exceptions import EsAdminException
from esadmin_core.registry import Param, command
from esadmin_core.utilities import (
    components_of,
    latest_snapshot_for_policy,
    millis_to_string,
    unique,
)

loggit = logging.getLogger("esadmin.operations.snapshots")


@command("snapshots", "repositories", "Snapshot repositories")
def repositories(ctx):
    """List the registered snapshot repositories."""
    repos = ctx.es.snapshot.get_repository()
    show_table(
        ctx,
        "Snapshot repositories",
        ["Repository", "Type"],
        [(name, repos[name].get("type", "")) for name in sorted(repos)],
    )


@command("snapshots", "verify-repositories", "Verify snapshot repositories")
def verify_repositories(ctx):
    """Verify every snapshot repository; a failure does not stop the others."""
    results = []
    for name in sorted(ctx.es.snapshot.get_repository()):
        try:
            nodes = ctx.es.snapshot.verify_repository(name=name).get("nodes", {})
            results.append((name, "verified", f"{len(nodes)} nodes"))
        except EsAdminException as e:
            loggit.error("Verification of repository %s failed: %s", name, e)
            results.append((name, "FAILED", str(e)))
    show_table(
        ctx, "Repository verification", ["Repository", "Result", "Details"], results
    )
    return results


@command("snapshots", "slm-policies", "SLM policies")
def slm_policies(ctx):
    """Show the snapshot lifecycle policies of the origin cluster."""
    show_json(ctx, ctx.origin_es.slm.get_lifecycle(), title="SLM policies")


@command(
    "snapshots",
    "latest-snapshot",
    "Latest snapshot of an SLM policy",
    params=(
        Param("repository", "Snapshot repository"),
        Param("policy", "SLM policy"),
    ),
)
def latest_snapshot(ctx, repository, policy):
    """Show the newest snapshot an SLM policy took, with what it contains."""
    es = ctx.es
    snapshots = es.snapshot.get(repository=repository, snapshot="_all").get(
        "snapshots", []
    )
    snapshot = latest_snapshot_for_policy(snapshots, policy)
    if snapshot is None:
        loggit.warning("No snapshots found for policy %s in %s", policy, repository)
        ctx.console.print(
            f"[yellow]No snapshots found for policy {policy} in {repository}[/yellow]"
        )
        return None
    ctx.console.print(
        f"Latest snapshot: [bold]{snapshot['snapshot']}[/bold] "
        f"({snapshot.get('state')}, started "
        f"{millis_to_string(snapshot.get('start_time_in_millis'))})"
    )
    details = es.snapshot.get(repository=repository, snapshot=snapshot["snapshot"])
    show_json(ctx, details, title="Snapshot details")

    indices = sorted(snapshot.get("indices", []))
    data_streams = sorted(snapshot.get("data_streams", []))
    show_list(ctx, "Indices", indices)
    show_list(ctx, "Data streams", data_streams)

    if data_streams:
        show_data_stream_templates(ctx, data_streams)
    if indices:
        show_index_policies(ctx, indices)
    return snapshot


def show_data_stream_templates(ctx, data_streams):
    """
    Index and component templates backing the data streams that exist in the
    current cluster.
    """
    wanted = set(data_streams)
    streams = [
        ds
        for ds in ctx.es.indices.get_data_stream(name="*", expand_wildcards="all").get(
            "data_streams", []
        )
        if ds["name"] in wanted
    ]
    index_templates = unique(ds["template"] for ds in streams if ds.get("template"))
    all_templates = ctx.es.indices.get_index_template().get("index_templates", [])
    component_templates = unique(
        component
        for name in index_templates
        for component in components_of(all_templates, name)
    )
    show_list(ctx, "Index templates", index_templates)
    show_list(ctx, "Component templates", component_templates)


def show_index_policies(ctx, indices):
    existing = {
        row["index"]
        for row in ctx.es.cat.indices(expand_wildcards="all", format="json", h="index")
    }
    present = [name for name in indices if name in existing]
    explain = {}
    if present:
        explain = ctx.es.ilm.explain_lifecycle(index=",".join(present)).get(
            "indices", {}
        )
    show_table(
        ctx,
        "ILM policy per index",
        ["Index", "Policy"],
        [(name, explain.get(name, {}).get("policy", "")) for name in indices],
    )


@command("snapshots", "restore", "Restore the latest snapshot", mutating=True)
def restore(ctx):
    """Restore the latest snapshot of an SLM policy and wait for recovery."""
    action = Restore(ctx)
    if ctx.dry_run:
        action.do_dry_run()
    else:
        action.do_action()
