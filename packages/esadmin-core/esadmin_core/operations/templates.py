"""Index and component template operations"""

import logging
from pathlib import Path

from esadmin_core.display import show_json, show_list, show_table
from esadmin_core.registry import Param, command, flag
from esadmin_core.utilities import (
    load_json_file,
    templates_matching_index,
    write_export,
)

loggit = logging.getLogger("esadmin.operations.templates")

NAME = Param("name", "Template name")
NAMES_ONLY = flag("names_only", "Names only? (true/false)")
IMPORT_FILE = Param("file", "File to import (empty for <name>.json)", required=False)


def _import_file(ctx, name, file):
    return load_json_file(file or str(Path(ctx.output_dir) / f"{name}.json"))


@command(
    "templates",
    "index-templates",
    "Index templates",
    params=(
        NAMES_ONLY,
        flag("with_components", "Show component templates? (true/false)"),
    ),
)
def index_templates(ctx, names_only=False, with_components=False):
    """List composable index templates."""
    templates = ctx.es.indices.get_index_template().get("index_templates", [])
    templates = sorted(templates, key=lambda t: t["name"])
    if names_only:
        names = [t["name"] for t in templates]
        show_list(ctx, f"Index templates ({len(names)})", names)
        return templates
    columns = ["Template", "Patterns", "Priority"]
    if with_components:
        columns.append("Component templates")
    rows = []
    for template in templates:
        body = template["index_template"]
        row = [
            template["name"],
            ", ".join(body.get("index_patterns", [])),
            body.get("priority", ""),
        ]
        if with_components:
            row.append(", ".join(body.get("composed_of", [])))
        rows.append(row)
    show_table(ctx, f"Index templates ({len(templates)})", columns, rows)
    return templates


@command("templates", "index-template", "Index template", params=(NAME,))
def index_template(ctx, name):
    """Show an index template, its patterns and the indices it matches."""
    templates = ctx.es.indices.get_index_template(name=name).get("index_templates", [])
    show_json(ctx, templates, title=f"Index template {name}")
    existing = [
        row["index"]
        for row in ctx.es.cat.indices(expand_wildcards="all", format="json", h="index")
    ]
    for template in templates:
        show_list(
            ctx, "Index patterns", template["index_template"].get("index_patterns", [])
        )
        matching = sorted(
            index
            for index in existing
            if template["name"] in templates_matching_index([template], index)
        )
        show_list(ctx, f"Matching indices ({len(matching)})", matching)


@command(
    "templates", "export-index-template", "Export an index template", params=(NAME,)
)
def export_index_template(ctx, name):
    """Write an index template to <name>.json."""
    templates = ctx.es.indices.get_index_template(name=name).get("index_templates", [])
    path = write_export(ctx.output_dir, f"{name}.json", templates[0]["index_template"])
    ctx.console.print(f"Exported index template {name} to {path}")
    return path


@command(
    "templates",
    "import-index-template",
    "Import an index template",
    params=(NAME, IMPORT_FILE),
    mutating=True,
)
def import_index_template(ctx, name, file=None):
    """Create or replace an index template from a JSON file."""
    body = _import_file(ctx, name, file)
    if not ctx.proceed(f"Create or replace index template {name}"):
        return
    show_json(ctx, ctx.es.indices.put_index_template(name=name, body=body))


@command(
    "templates",
    "delete-index-template",
    "Delete an index template",
    params=(NAME,),
    mutating=True,
)
def delete_index_template(ctx, name):
    """Delete an index template."""
    if not ctx.proceed(f"Delete index template {name}"):
        return
    show_json(ctx, ctx.es.indices.delete_index_template(name=name))


@command(
    "templates", "component-templates", "Component templates", params=(NAMES_ONLY,)
)
def component_templates(ctx, names_only=False):
    """List component templates."""
    templates = ctx.es.cluster.get_component_template().get("component_templates", [])
    names = sorted(t["name"] for t in templates)
    if names_only:
        show_list(ctx, f"Component templates ({len(names)})", names)
    else:
        show_json(ctx, templates, title=f"Component templates ({len(names)})")
    return names


@command("templates", "component-template", "Component template", params=(NAME,))
def component_template(ctx, name):
    """Show one component template."""
    show_json(
        ctx,
        ctx.es.cluster.get_component_template(name=name),
        title=f"Component template {name}",
    )


@command(
    "templates",
    "export-component-template",
    "Export a component template",
    params=(NAME,),
)
def export_component_template(ctx, name):
    """Write a component template to <name>.json."""
    templates = ctx.es.cluster.get_component_template(name=name).get(
        "component_templates", []
    )
    path = write_export(
        ctx.output_dir, f"{name}.json", templates[0]["component_template"]
    )
    ctx.console.print(f"Exported component template {name} to {path}")
    return path


@command(
    "templates",
    "import-component-template",
    "Import a component template",
    params=(NAME, IMPORT_FILE),
    mutating=True,
)
def import_component_template(ctx, name, file=None):
    """Create or replace a component template from a JSON file."""
    body = _import_file(ctx, name, file)
    if not ctx.proceed(f"Create or replace component template {name}"):
        return
    show_json(ctx, ctx.es.cluster.put_component_template(name=name, body=body))


@command(
    "templates",
    "delete-component-template",
    "Delete a component template",
    params=(NAME,),
    mutating=True,
)
def delete_component_template(ctx, name):
    """Delete a component template."""
    if not ctx.proceed(f"Delete component template {name}"):
        return
    show_json(ctx, ctx.es.cluster.delete_component_template(name=name))
