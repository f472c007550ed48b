"""
Interactive text menu

Numbered menus built from the command registry. A failing operation is
reported and the menu carries on.
"""

import logging

import click
from esadmin_core import REGISTRY, EsAdminException

loggit = logging.getLogger("esadmin.menu")

EXIT = "exit"
BACK = "back"


def select(context, menu: str, options: list[str]) -> str:
    """
    Show ``options`` numbered from 1 and return the one picked.
    """
    context.console.print(
        f"\n({context.environment}) [{menu}] Please select an option:", markup=False
    )
    for number, option in enumerate(options, 1):
        context.console.print(f"{number}) {option}")
    number = click.prompt("Option", type=click.IntRange(1, len(options)))
    return options[number - 1]


def run_submenu(context, menu: str, registry=REGISTRY) -> None:
    commands = registry.for_menu(menu)
    titles = [command.title for command in commands]
    while True:
        choice = select(context, menu, titles + [BACK])
        if choice == BACK:
            return
        command = commands[titles.index(choice)]
        try:
            command.run(context)
        except EsAdminException as e:
            loggit.error("%s %s failed: %s", menu, command.name, e)
            click.echo(f"Error: {e}", err=True)


def run_menu(context, registry=REGISTRY) -> None:
    """
    Main menu loop; returns when EXIT is picked.
    """
    while True:
        choice = select(context, "main", registry.menus() + [EXIT])
        if choice == EXIT:
            return
        run_submenu(context, choice, registry)
