"""ILM operations"""

import logging
from pathlib import Path

from esadmin_core.display import show_json, show_list, show_table
from esadmin_core.exceptions import InvalidInputError
from esadmin_core.registry import Param, command, flag
from esadmin_core.utilities import (
    ilm_policy_rows,
    is_managed_policy,
    load_json_file,
    write_export,
)

loggit = logging.getLogger("esadmin.operations.ilm")

POLICY = Param("name", "ILM policy name")
INDEX = Param("index", "Index name")


def _errors(ctx) -> dict:
    return ctx.es.ilm.explain_lifecycle(
        index=".*,*", only_managed=False, only_errors=True
    ).get("indices", {})


@command(
    "ilm",
    "policies",
    "ILM policies",
    params=(flag("names_only", "Names only? (true/false)"),),
)
def policies(ctx, names_only=False):
    """Show ILM policies, a usage summary and the managed/unmanaged split."""
    body = ctx.es.ilm.get_lifecycle()
    if names_only:
        show_list(ctx, f"ILM policies ({len(body)})", sorted(body))
        return body
    show_json(ctx, body, title="ILM policies")
    show_table(
        ctx,
        "ILM policy usage",
        ["Policy", "Managed", "Indices", "Data streams", "Composable templates"],
        ilm_policy_rows(body),
    )
    managed = sorted(name for name, policy in body.items() if is_managed_policy(policy))
    unmanaged = sorted(set(body) - set(managed))
    show_list(ctx, f"Managed policies ({len(managed)})", managed)
    show_list(ctx, f"Unmanaged policies ({len(unmanaged)})", unmanaged)
    return body


@command("ilm", "policy", "ILM policy", params=(POLICY,))
def policy(ctx, name):
    """Show one ILM policy."""
    show_json(ctx, ctx.es.ilm.get_lifecycle(name=name), title=f"ILM policy {name}")


@command("ilm", "export", "Export an ILM policy", params=(POLICY,))
def export(ctx, name):
    """Write an ILM policy to <name>.json, ready to be imported again."""
    body = ctx.es.ilm.get_lifecycle(name=name)
    exported = {"policy": body[name]["policy"]}
    path = write_export(ctx.output_dir, f"{name}.json", exported)
    ctx.console.print(f"Exported ILM policy {name} to {path}")
    return path


@command("ilm", "import", "Import an ILM policy", params=(POLICY,), mutating=True)
def import_policy(ctx, name):
    """Create or replace an ILM policy from <name>.json."""
    data = load_json_file(str(Path(ctx.output_dir) / f"{name}.json"))
    if "policy" not in data:
        raise InvalidInputError(f"{name}.json has no top-level 'policy' key")
    if not ctx.proceed(f"Create or replace ILM policy {name}"):
        return
    show_json(ctx, ctx.es.ilm.put_lifecycle(name=name, policy=data["policy"]))


@command("ilm", "delete", "Delete an ILM policy", params=(POLICY,), mutating=True)
def delete(ctx, name):
    """Delete an ILM policy."""
    if not ctx.proceed(f"Delete ILM policy {name}"):
        return
    show_json(ctx, ctx.es.ilm.delete_lifecycle(name=name))


@command("ilm", "errors", "ILM errors")
def errors(ctx):
    """List indices whose ILM execution is in error, with the reason."""
    indices = _errors(ctx)
    rows = [
        (name, (state.get("step_info") or {}).get("reason", ""))
        for name, state in sorted(indices.items())
    ]
    show_table(ctx, f"Indices with ILM errors ({len(rows)})", ["Index", "Reason"], rows)
    return rows


@command("ilm", "errors-verbose", "ILM errors (verbose)")
def errors_verbose(ctx):
    """Show the full ILM explanation of every index in error."""
    show_json(ctx, _errors(ctx), title="ILM errors")


@command("ilm", "explain", "Explain ILM for an index", params=(INDEX,))
def explain(ctx, index):
    """Show where an index is in its lifecycle."""
    body = ctx.es.ilm.explain_lifecycle(index=index)
    show_json(ctx, body, title=f"ILM explain {index}")


@command(
    "ilm",
    "move-to-step",
    "Move an index to an ILM step",
    params=(
        INDEX,
        Param("current_phase", "Current phase"),
        Param("current_action", "Current action"),
        Param("current_name", "Current step"),
        Param("next_phase", "Next phase"),
        Param("next_action", "Next action"),
        Param("next_name", "Next step"),
    ),
    mutating=True,
)
def move_to_step(
    ctx,
    index,
    current_phase,
    current_action,
    current_name,
    next_phase,
    next_action,
    next_name,
):
    """Move an index from its current ILM step to another one."""
    current = {"phase": current_phase, "action": current_action, "name": current_name}
    target = {"phase": next_phase, "action": next_action, "name": next_name}
    if not ctx.proceed(f"Move {index} from {current} to {target}"):
        return
    response = ctx.es.ilm.move_to_step(
        index=index, current_step=current, next_step=target
    )
    show_json(ctx, response)
