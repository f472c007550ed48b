"""Kibana operations"""

import logging

from esadmin_core.display import show_json, show_table
from esadmin_core.registry import Param, command
from esadmin_core.utilities import write_export

loggit = logging.getLogger("esadmin.operations.kibana")

OBJECT_TYPE = Param("object_type", "Saved object type (e.g. dashboard, index-pattern)")
SPACE = Param("space", "Kibana space", required=False, default="default")


@command("kibana", "spaces", "Kibana spaces")
def spaces(ctx):
    """List Kibana spaces."""
    body = ctx.require_kibana().get("/api/spaces/space")
    show_table(
        ctx,
        f"Kibana spaces ({len(body)})",
        ["Id", "Name", "Disabled features"],
        [
            (
                space.get("id"),
                space.get("name", ""),
                ", ".join(space.get("disabledFeatures", [])),
            )
            for space in body
        ],
    )
    return body


@command("kibana", "roles", "Kibana roles")
def roles(ctx):
    """Show the roles defined through Kibana."""
    body = ctx.require_kibana().get("/api/security/role")
    show_json(ctx, body, title="Roles")
    return body


@command("kibana", "saved-objects", "Saved objects", params=(OBJECT_TYPE, SPACE))
def saved_objects(ctx, object_type, space="default"):
    """List the saved objects of one type in a space."""
    body = ctx.require_kibana().get(
        "/api/saved_objects/_find",
        params={"type": object_type, "per_page": 10000},
        space=space,
    )
    objects = body.get("saved_objects", [])
    show_table(
        ctx,
        f"{object_type} saved objects in {space} ({body.get('total', len(objects))})",
        ["Id", "Title"],
        [
            (obj.get("id"), obj.get("attributes", {}).get("title", ""))
            for obj in objects
        ],
    )
    return objects


@command(
    "kibana",
    "export-saved-objects",
    "Export saved objects",
    params=(OBJECT_TYPE, SPACE),
)
def export_saved_objects(ctx, object_type, space="default"):
    """Export the saved objects of one type in a space to <space>-<type>.ndjson."""
    ndjson = ctx.require_kibana().post(
        "/api/saved_objects/_export",
        json={"type": object_type, "excludeExportDetails": True},
        space=space,
        expect_json=False,
    )
    path = write_export(ctx.output_dir, f"{space}-{object_type}.ndjson", ndjson)
    ctx.console.print(f"Exported {object_type} saved objects from {space} to {path}")
    return path
