"""
Fleet operations

Fleet is managed through Kibana, so apart from the agent count read from the
``.fleet-agents`` index these go to the Kibana API.
"""

import logging

from esadmin_core.constants import FLEET_PAGE_SIZE
from esadmin_core.display import show_json, show_list, show_table
from esadmin_core.registry import Param, command, flag

loggit = logging.getLogger("esadmin.operations.fleet")

FLEET_AGENTS_INDEX = ".fleet-agents"


def list_kibana_agents(kibana) -> list[dict]:
    """
    Every agent Fleet knows about, following pagination.
    """
    agents = []
    page = 1
    while True:
        body = kibana.get(
            "/api/fleet/agents", params={"perPage": FLEET_PAGE_SIZE, "page": page}
        )
        batch = body.get("items", body.get("list", []))
        agents.extend(batch)
        total = body.get("total", len(agents))
        if not batch or len(agents) >= total:
            return agents
        page += 1


@command(
    "fleet",
    "agents",
    "Fleet agents",
    params=(flag("verbose", "Verbose output? (true/false)"),),
)
def agents(ctx, verbose=False):
    """Show the Fleet agents stored in Elasticsearch and reported by Kibana."""
    kibana = ctx.require_kibana()
    body = ctx.es.search(
        index=FLEET_AGENTS_INDEX,
        query={"match_all": {}},
        source=["agent_id"],
        size=10000,
    )
    hits = body.get("hits", {})
    ctx.console.print(f"Fleet agents count: {hits.get('total', {}).get('value', 0)}")
    show_list(ctx, "Fleet agent ids", [hit["_id"] for hit in hits.get("hits", [])])
    listed = list_kibana_agents(kibana)
    if verbose:
        show_json(ctx, listed, title="Fleet agents (Kibana)")
    else:
        show_table(
            ctx,
            f"Fleet agents (Kibana, {len(listed)})",
            ["Agent id", "Status"],
            [(agent.get("id"), agent.get("status", "")) for agent in listed],
        )
    return listed


@command("fleet", "unenroll-agents", "Unenroll all agents", mutating=True)
def unenroll_agents(ctx):
    """Force-unenroll every Fleet agent and revoke its API keys."""
    kibana = ctx.require_kibana()
    ids = [agent["id"] for agent in list_kibana_agents(kibana)]
    if not ids:
        loggit.warning("No Fleet agents to unenroll")
        ctx.console.print("[yellow]No Fleet agents to unenroll[/yellow]")
        return None
    show_list(ctx, f"Agents to unenroll ({len(ids)})", ids)
    if not ctx.proceed(f"Unenroll {len(ids)} Fleet agents"):
        return None
    response = kibana.post(
        "/api/fleet/agents/bulk_unenroll",
        json={"agents": ids, "force": True, "revoke": True},
    )
    show_json(ctx, response, title="Unenroll")
    return response


@command("fleet", "server-hosts", "Fleet server hosts")
def server_hosts(ctx):
    """Show the configured Fleet server hosts."""
    body = ctx.require_kibana().get("/api/fleet/fleet_server_hosts")
    show_json(ctx, body, title="Fleet server hosts")
    return body


@command(
    "fleet",
    "update-server-host",
    "Update a Fleet server host",
    params=(
        Param("host_id", "Fleet server host id"),
        Param("host_urls", "Fleet server host URLs (space separated)"),
        Param("is_default", "Default host? (true/false)", kind="bool"),
    ),
    mutating=True,
)
def update_server_host(ctx, host_id, host_urls, is_default):
    """Replace the URLs of a Fleet server host."""
    kibana = ctx.require_kibana()
    body = {"host_urls": host_urls.split(), "is_default": is_default}
    show_json(ctx, body, title="Request body")
    if not ctx.proceed(f"Update Fleet server host {host_id}"):
        return None
    response = kibana.put(f"/api/fleet/fleet_server_hosts/{host_id}", json=body)
    show_json(ctx, response)
    return response


@command(
    "fleet",
    "delete-server-host",
    "Delete a Fleet server host",
    params=(Param("host_id", "Fleet server host id"),),
    mutating=True,
)
def delete_server_host(ctx, host_id):
    """Delete a Fleet server host."""
    kibana = ctx.require_kibana()
    if not ctx.proceed(f"Delete Fleet server host {host_id}"):
        return None
    response = kibana.delete(f"/api/fleet/fleet_server_hosts/{host_id}")
    show_json(ctx, response)
    return response


@command("fleet", "outputs", "Fleet outputs")
def outputs(ctx):
    """Show the configured Fleet outputs."""
    body = ctx.require_kibana().get("/api/fleet/outputs")
    show_json(ctx, body, title="Fleet outputs")
    return body


@command(
    "fleet",
    "update-output",
    "Update a Fleet output",
    params=(
        Param("output_id", "Fleet output id"),
        Param("is_default", "Default output? (true/false)", kind="bool"),
        Param(
            "is_default_monitoring",
            "Default monitoring output? (true/false)",
            kind="bool",
        ),
    ),
    mutating=True,
)
def update_output(ctx, output_id, is_default, is_default_monitoring):
    """Change whether a Fleet output is the default data and monitoring output."""
    kibana = ctx.require_kibana()
    body = {"is_default": is_default, "is_default_monitoring": is_default_monitoring}
    if not ctx.proceed(f"Update Fleet output {output_id} with {body}"):
        return None
    response = kibana.put(f"/api/fleet/outputs/{output_id}", json=body)
    show_json(ctx, response)
    return response
