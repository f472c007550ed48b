"""Index operations"""

import logging

from esadmin_core.constants import DEFAULT_DOCUMENT_COUNT
from esadmin_core.display import show_json, show_list, show_table
from esadmin_core.exceptions import MissingInputError
from esadmin_core.registry import Param, command
from esadmin_core.utilities import (
    components_of,
    dotted_setting_to_body,
    millis_to_string,
    read_names_from_file,
    templates_matching_index,
    unique,
)

loggit = logging.getLogger("esadmin.operations.indices")

INDEX_OR_FILE = (
    Param(
        "index",
        "Index name or wildcard (empty to read names from a file)",
        required=False,
    ),
    Param("file", "File with one index name per line", required=False),
)


def target_indices(index: str = None, file: str = None) -> list[str]:
    """
    Index names given directly, or read from a file when no name was given.

    :raises MissingInputError: if neither was given
    """
    if index:
        return [index]
    if file:
        return read_names_from_file(file)
    raise MissingInputError("An index name or a file of index names is required!")


def _names(rows) -> list[str]:
    return [row["index"] for row in rows]


@command("indices", "list", "List indices")
def list_indices(ctx):
    """List every index, then the visible and hidden ones separately."""
    rows = ctx.es.cat.indices(expand_wildcards="all", s="index", format="json")
    show_table(
        ctx,
        f"Indices ({len(rows)})",
        ["Index", "Health", "Status", "Docs", "Size"],
        [
            (
                row.get("index"),
                row.get("health"),
                row.get("status"),
                row.get("docs.count") or "",
                row.get("store.size") or "",
            )
            for row in rows
        ],
    )
    visible = _names(
        ctx.es.cat.indices(
            expand_wildcards="open,closed", s="index", format="json", h="index"
        )
    )
    hidden = sorted(set(_names(rows)) - set(visible))
    show_list(ctx, f"Visible indices ({len(visible)})", visible)
    show_list(ctx, f"Hidden indices ({len(hidden)})", hidden)
    return rows


@command("indices", "details", "Index details", params=(Param("index", "Index name"),))
def details(ctx, index):
    """Show everything known about one index."""
    es = ctx.es
    rows = es.cat.indices(index=index, expand_wildcards="all", format="json")
    show_json(ctx, rows, title="Index")
    settings = es.indices.get_settings(index=index, expand_wildcards="all")
    show_json(ctx, settings, title="Settings")
    all_templates = es.indices.get_index_template().get("index_templates", [])
    for name, body in sorted(settings.items()):
        created = body.get("settings", {}).get("index", {}).get("creation_date")
        ctx.console.print(f"\n{name} created {millis_to_string(created)}")
        matching = templates_matching_index(all_templates, name)
        components = unique(
            component
            for template in matching
            for component in components_of(all_templates, template)
        )
        show_list(ctx, "Matching index templates", matching)
        show_list(ctx, "Component templates", components)
    aliases = es.indices.get_alias(index=index, expand_wildcards="all")
    show_json(ctx, aliases, title="Aliases")
    owners = {
        name: body.get("data_stream")
        for name, body in es.indices.get(index=index, expand_wildcards="all").items()
        if body.get("data_stream")
    }
    show_table(
        ctx, "Owning data stream", ["Index", "Data stream"], sorted(owners.items())
    )
    show_json(ctx, es.ilm.explain_lifecycle(index=index), title="ILM explain")


@command(
    "indices",
    "documents",
    "Sample documents",
    params=(
        Param("index", "Index name"),
        Param(
            "size",
            "Number of documents",
            required=False,
            default=DEFAULT_DOCUMENT_COUNT,
            kind="int",
        ),
    ),
)
def documents(ctx, index, size=DEFAULT_DOCUMENT_COUNT):
    """Show the document count and the first documents of an index."""
    count = ctx.es.count(index=index).get("count", 0)
    ctx.console.print(f"{index} holds {count} documents")
    hits = ctx.es.search(index=index, query={"match_all": {}}, size=size)
    show_json(ctx, hits.get("hits", {}).get("hits", []), title="Documents")
    return count


@command(
    "indices",
    "modify-settings",
    "Modify index settings",
    params=(Param("setting", "Setting as dotted.key:value"),) + INDEX_OR_FILE,
    mutating=True,
)
def modify_settings(ctx, setting, index=None, file=None):
    """Apply one dotted.key:value setting to an index or to a file of index names."""
    body = dotted_setting_to_body(setting)
    names = target_indices(index, file)
    if not ctx.proceed(f"Apply {setting} to {', '.join(names)}"):
        return
    show_json(ctx, ctx.es.indices.put_settings(index=",".join(names), settings=body))


@command("indices", "mapping", "Index mapping", params=(Param("index", "Index name"),))
def mapping(ctx, index):
    """Show the mapping of one index."""
    show_json(ctx, ctx.es.indices.get_mapping(index=index), title=f"Mapping of {index}")


@command("indices", "all-mappings", "All mappings")
def all_mappings(ctx):
    """Show the mapping of every index."""
    show_json(ctx, ctx.es.indices.get_mapping(expand_wildcards="all"), title="Mappings")


@command("indices", "close", "Close indices", params=INDEX_OR_FILE, mutating=True)
def close(ctx, index=None, file=None):
    """Close an index, a wildcard, or the indices listed in a file."""
    names = target_indices(index, file)
    if not ctx.proceed(f"Close {', '.join(names)}"):
        return
    show_json(ctx, ctx.es.indices.close(index=",".join(names)))


@command("indices", "delete", "Delete indices", params=INDEX_OR_FILE, mutating=True)
def delete(ctx, index=None, file=None):
    """Delete an index, a wildcard, or the indices listed in a file."""
    names = target_indices(index, file)
    if not ctx.proceed(f"Delete {', '.join(names)}"):
        return
    loggit.warning("Deleting %s", names)
    show_json(ctx, ctx.es.indices.delete(index=",".join(names)))


@command(
    "indices",
    "reindex",
    "Reindex",
    params=(
        Param("source", "Source index"),
        Param("dest", "Destination index"),
    ),
    mutating=True,
)
def reindex(ctx, source, dest):
    """Start a background reindex and print its task id."""
    if not ctx.proceed(f"Reindex {source} into {dest}"):
        return None
    response = ctx.es.reindex(
        source={"index": source}, dest={"index": dest}, wait_for_completion=False
    )
    task = response.get("task")
    ctx.console.print(f"Reindex task: {task}")
    return task
