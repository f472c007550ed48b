"""
esadmin CLI entry point

``esadmin ENVIRONMENT`` starts the interactive menu; ``esadmin ENVIRONMENT MENU
COMMAND [OPTIONS]`` runs one operation. ``esadmin-restore ENVIRONMENT`` runs the
snapshot restore workflow.
"""

import logging

import click
from esadmin_core import (
    REGISTRY,
    Context,
    ENVIRONMENTS,
    ESClientWrapper,
    EsAdminException,
    KibanaClient,
    Restore,
    create_es_client,
)
from rich.console import Console

from esadmin import __version__
from esadmin.config import (
    configure_logging,
    get_elasticsearch_config,
    get_kibana_config,
    load_settings,
)
from esadmin.menu import run_menu

PROD_BANNER = "WARNING: you are working on the PRODUCTION cluster"

PARAM_TYPES = {"bool": click.BOOL, "int": click.INT, "str": click.STRING}

GLOBAL_FLAGS = ("--verbose", "--debug", "--dry-run")
GLOBAL_OPTIONS = ("--env-dir", "--output-dir")


def prompt(text: str, default=None) -> str:
    return click.prompt(
        text, default="" if default is None else default, show_default=bool(default)
    )


def confirm(text: str) -> bool:
    return click.prompt(text, default="", show_default=False) == "y"


def build_context(
    settings, environment: str, dry_run: bool, output_dir: str = "."
) -> Context:
    """
    Create the clients described by the settings and wrap them in a Context.
    """
    es = ESClientWrapper(create_es_client(**get_elasticsearch_config(settings)))
    origin = None
    if settings.origin_es_host != settings.es_host:
        origin = ESClientWrapper(
            create_es_client(**get_elasticsearch_config(settings, origin=True)),
            name="origin",
        )
    kibana_config = get_kibana_config(settings)
    return Context(
        es=es,
        console=Console(),
        prompt=prompt,
        confirm=confirm,
        kibana=KibanaClient(**kibana_config) if kibana_config else None,
        origin=origin,
        environment=environment,
        dry_run=dry_run,
        snapshot_repository=settings.snapshot_repository,
        restore_defaults=settings.restore_defaults,
        poll_interval=settings.recovery_poll_interval,
        recovery_timeout=settings.recovery_timeout,
        output_dir=output_dir,
    )


def get_context(ctx) -> Context:
    """
    Get or create the execution context from the CLI context.

    This lazily creates the clients on first use.
    """
    obj = ctx.find_root().obj
    if obj.get("context") is None:
        try:
            obj["context"] = build_context(
                obj["settings"], obj["environment"], obj["dry_run"], obj["output_dir"]
            )
        except Exception as e:
            click.echo(f"Error connecting to Elasticsearch: {e}", err=True)
            ctx.exit(1)
    return obj["context"]


def check_environment(ctx, environment) -> None:
    if environment not in ENVIRONMENTS:
        if environment:
            click.echo(f"Error: unknown environment {environment!r}", err=True)
        click.echo(ctx.get_usage(), err=True)
        click.echo(f"ENVIRONMENT must be one of: {', '.join(ENVIRONMENTS)}", err=True)
        ctx.exit(1)
    if environment == "prod":
        click.secho(PROD_BANNER, fg="red", bold=True, err=True)


def make_callback(command):
    @click.pass_context
    def callback(ctx, **values):
        context = get_context(ctx)
        try:
            command.run(context, values)
        except EsAdminException as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)

    return callback


def build_command(command) -> click.Command:
    options = [
        click.Option(
            [f"--{param.name.replace('_', '-')}", param.name],
            type=PARAM_TYPES[param.kind],
            default=None,
            help=param.prompt,
        )
        for param in command.params
    ]
    return click.Command(
        name=command.name,
        callback=make_callback(command),
        params=options,
        help=command.help,
        short_help=command.title,
    )


def build_menu_group(menu: str, registry=REGISTRY) -> click.Group:
    group = click.Group(name=menu, help=f"{menu.capitalize()} operations")
    for command in registry.for_menu(menu):
        group.add_command(build_command(command))
    return group



def hoist_global_options(args) -> list:
    """
    Move the group's own options found right after ENVIRONMENT in front of it,
    so ``esadmin test --verbose`` parses like ``esadmin --verbose test``.
    Options after the menu name belong to the command and are left alone.
    """
    args = list(args)
    position = 0
    while position < len(args) and args[position].startswith("-"):
        position += 2 if args[position] in GLOBAL_OPTIONS else 1
    moved = []
    following = position + 1
    global_options = GLOBAL_FLAGS + GLOBAL_OPTIONS
    while following < len(args) and args[following] in global_options:
        count = 2 if args[following] in GLOBAL_OPTIONS else 1
        moved.extend(args[following : following + count])
        del args[following : following + count]
    return moved + args


class EnvironmentGroup(click.Group):
    def parse_args(self, ctx, args):
        return super().parse_args(ctx, hoist_global_options(args))


@click.group(cls=EnvironmentGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="esadmin")
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Display extra information during execution",
)
@click.option("--debug", is_flag=True, hidden=True)
@click.option(
    "--env-dir",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Directory holding the .env.<environment> files",
)
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Where exports are written and imports are read from",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Do not perform any changes, only show what would happen",
)
@click.argument("environment", required=False)
@click.pass_context
def cli(ctx, verbose, debug, env_dir, output_dir, dry_run, environment):
    """
    esadmin - Elasticsearch and Kibana administration

    Runs read and write operations against the cluster described by
    .env.ENVIRONMENT. Without a command the interactive menu starts.

    \b
    Examples:
      esadmin test
      esadmin test cluster health
      esadmin prod datastreams repair --name logs-app-default
    """
    ctx.ensure_object(dict)
    check_environment(ctx, environment)
    configure_logging(verbose, debug)
    try:
        settings = load_settings(environment, env_dir)
    except EsAdminException as e:
        click.echo(f"Configuration error: {e}", err=True)
        ctx.exit(1)
    ctx.obj.update(
        {
            "settings": settings,
            "environment": environment,
            "dry_run": dry_run,
            "output_dir": output_dir,
            # Clients are created lazily when needed
            "context": None,
        }
    )
    if dry_run:
        logging.getLogger("esadmin.cli").warning(
            "DRY-RUN MODE.  No changes will be made."
        )
    if ctx.invoked_subcommand is None:
        run_menu(get_context(ctx))


for _menu in REGISTRY.menus():
    cli.add_command(build_menu_group(_menu))


@click.command()
@click.version_option(version=__version__, prog_name="esadmin-restore")
@click.option(
    "--verbose",
    is_flag=True,
    default=False,
    help="Display extra information during execution",
)
@click.option("--debug", is_flag=True, hidden=True)
@click.option(
    "--env-dir",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Directory holding the .env.restore.<environment> files",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Walk through the restore without submitting it",
)
@click.argument("environment", required=False)
@click.pass_context
def restore_cli(ctx, verbose, debug, env_dir, dry_run, environment):
    """
    Restore the latest snapshot of an SLM policy into the cluster described by
    .env.restore.ENVIRONMENT, then wait until every shard has recovered.
    """
    check_environment(ctx, environment)
    configure_logging(verbose, debug)
    try:
        settings = load_settings(environment, env_dir, restore=True)
        action = Restore(build_context(settings, environment, dry_run))
        if dry_run:
            action.do_dry_run()
        else:
            action.do_action()
    except EsAdminException as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


if __name__ == "__main__":
    cli()
