"""Alias operations"""

from esadmin_core.display import show_json, show_table
from esadmin_core.registry import Param, command, flag

ALIAS = Param("alias", "Alias name")
INDEX = Param("index", "Index name")


@command("aliases", "list", "List aliases")
def list_aliases(ctx):
    """Show every alias and which index it points to."""
    body = ctx.es.indices.get_alias(expand_wildcards="all")
    rows = [
        (index, alias, str(settings.get("is_write_index", "")).lower())
        for index in sorted(body)
        for alias, settings in sorted(body[index].get("aliases", {}).items())
    ]
    show_table(ctx, "Aliases", ["Index", "Alias", "Write index"], rows)
    count = len(ctx.es.cat.aliases(format="json", expand_wildcards="all"))
    ctx.console.print(f"{count} aliases")
    return rows


@command("aliases", "find", "Find an alias", params=(ALIAS,))
def find(ctx, alias):
    """Show the indices an alias points to."""
    show_json(ctx, ctx.es.indices.get_alias(name=alias), title=f"Alias {alias}")


@command("aliases", "create", "Create an alias", params=(ALIAS, INDEX), mutating=True)
def create(ctx, alias, index):
    """Point a new alias at an index."""
    if not ctx.proceed(f"Create alias {alias} on {index}"):
        return
    show_json(ctx, ctx.es.indices.put_alias(index=index, name=alias))


@command(
    "aliases",
    "add-to-index",
    "Add an alias to an index",
    params=(
        INDEX,
        ALIAS,
        flag("is_write_index", "Write index? (true/false)"),
    ),
    mutating=True,
)
def add_to_index(ctx, index, alias, is_write_index=False):
    """Add an alias to an index, optionally as its write index."""
    action = {"add": {"index": index, "alias": alias, "is_write_index": is_write_index}}
    if not ctx.proceed(f"Add alias {alias} to {index} (write index: {is_write_index})"):
        return
    show_json(ctx, ctx.es.indices.update_aliases(actions=[action]))
