"""Ingest pipeline operations"""

from esadmin_core.display import show_json, show_table
from esadmin_core.registry import Param, command, flag


@command(
    "ingest",
    "pipelines",
    "Ingest pipelines",
    params=(flag("verbose", "Verbose output? (true/false)"),),
)
def pipelines(ctx, verbose=False):
    """List ingest pipelines with who manages them."""
    body = ctx.es.ingest.get_pipeline()
    if verbose:
        show_json(ctx, body, title="Ingest pipelines")
    rows = []
    for name in sorted(body):
        meta = body[name].get("_meta") or {}
        managed = meta.get("managed")
        rows.append(
            (
                name,
                "N/A" if managed is None else str(managed).lower(),
                meta.get("managed_by", "N/A"),
            )
        )
    show_table(ctx, "Ingest pipelines", ["Pipeline", "Managed", "Managed by"], rows)
    ctx.console.print(f"Number of ingest pipelines: {len(body)}")
    return rows


@command(
    "ingest",
    "pipeline",
    "Ingest pipeline",
    params=(Param("pipeline_id", "Pipeline id"),),
)
def pipeline(ctx, pipeline_id):
    """Show one ingest pipeline."""
    body = ctx.es.ingest.get_pipeline(id=pipeline_id)
    show_json(ctx, body, title=f"Pipeline {pipeline_id}")
