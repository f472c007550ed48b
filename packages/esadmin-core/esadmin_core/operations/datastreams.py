"""Data stream operations"""

import logging

from esadmin_core.actions import RepairDataStream
from esadmin_core.display import show_json, show_list, show_table
from esadmin_core.exceptions import ActionError
from esadmin_core.registry import Param, command
from esadmin_core.utilities import components_of

loggit = logging.getLogger("esadmin.operations.datastreams")

NAME = Param("name", "Data stream name")


@command("datastreams", "list", "List data streams")
def list_data_streams(ctx):
    """List data streams with their backing indices."""
    streams = ctx.es.indices.get_data_stream(name="*", expand_wildcards="all").get(
        "data_streams", []
    )
    show_table(
        ctx,
        f"Data streams ({len(streams)})",
        ["Data stream", "Status", "Template", "Backing indices"],
        [
            (
                ds["name"],
                ds.get("status", ""),
                ds.get("template", ""),
                ", ".join(index["index_name"] for index in ds.get("indices", [])),
            )
            for ds in sorted(streams, key=lambda ds: ds["name"])
        ],
    )
    return streams


@command("datastreams", "details", "Data stream details", params=(NAME,))
def details(ctx, name):
    """Show a data stream, its backing indices and the templates behind it."""
    streams = ctx.es.indices.get_data_stream(name=name).get("data_streams", [])
    show_json(ctx, streams, title=f"Data stream {name}")
    all_templates = ctx.es.indices.get_index_template().get("index_templates", [])
    for ds in streams:
        show_list(
            ctx,
            f"Backing indices of {ds['name']}",
            [index["index_name"] for index in ds.get("indices", [])],
        )
        template = ds.get("template")
        show_list(ctx, "Index template", [template] if template else [])
        show_list(ctx, "Component templates", components_of(all_templates, template))


@command(
    "datastreams",
    "rollover",
    "Roll over a data stream",
    params=(NAME,),
    mutating=True,
)
def rollover(ctx, name):
    """Roll a data stream over to a new write index."""
    if not ctx.proceed(f"Roll over data stream {name}"):
        return
    show_json(ctx, ctx.es.indices.rollover(alias=name), title="Rollover")


@command(
    "datastreams",
    "add-backing-index",
    "Add a backing index",
    params=(NAME, Param("index", "Index to add")),
    mutating=True,
)
def add_backing_index(ctx, name, index):
    """Attach an existing index to a data stream as a backing index."""
    if not ctx.proceed(f"Add {index} to data stream {name}"):
        return
    response = ctx.es.indices.modify_data_stream(
        actions=[{"add_backing_index": {"data_stream": name, "index": index}}]
    )
    show_json(ctx, response)


@command("datastreams", "delete", "Delete a data stream", params=(NAME,), mutating=True)
def delete(ctx, name):
    """Delete a data stream and all its backing indices."""
    if not ctx.proceed(f"Delete data stream {name} and its backing indices"):
        return
    loggit.warning("Deleting data stream %s", name)
    show_json(ctx, ctx.es.indices.delete_data_stream(name=name))


@command(
    "datastreams",
    "repair",
    "Repair backing indices",
    params=(NAME,),
    mutating=True,
)
def repair(ctx, name):
    """Reassign ILM and pipelines and reattach detached backing indices."""
    action = RepairDataStream(ctx, name)
    if ctx.dry_run:
        return action.do_dry_run()
    report = action.do_action()
    if report is not None and not report.ok:
        raise ActionError(
            f"Repair of {name} failed for {len(report.failures)} indices: "
            f"{', '.join(sorted(report.failures))}"
        )
    return report
