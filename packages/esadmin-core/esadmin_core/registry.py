"""
registry.py

The command registry: every operation is registered under a menu and a command
id, together with the parameters it needs. The command line and the interactive
menu are both built from it.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from esadmin_core.constants import MENUS
from esadmin_core.exceptions import InvalidInputError, MissingInputError
from esadmin_core.utilities import parse_bool

loggit = logging.getLogger("esadmin.registry")


@dataclass(frozen=True)
class Param:
    """
    One input of a command.

    :param name: keyword passed to the handler
    :param prompt: text shown when the value has to be asked for
    :param required: an empty answer aborts the command
    :param default: value offered when the answer is empty
    :param kind: "str", "bool" or "int"
    """

    name: str
    prompt: str
    required: bool = True
    default: object = None
    kind: str = "str"


@dataclass
class Command:
    menu: str
    name: str
    title: str
    handler: Callable
    params: tuple = ()
    mutating: bool = False

    @property
    def help(self) -> str:
        return (self.handler.__doc__ or self.title).strip().splitlines()[0]

    def collect(self, ctx, provided: Optional[dict] = None) -> dict:
        """
        Resolve the handler's keyword arguments.

        Values given up front are used as they are; missing ones are asked for
        with ``ctx.prompt``. Empty answers fall back to the declared default.

        :raises MissingInputError: if a required value ends up empty
        """
        provided = provided or {}
        values = {}
        for param in self.params:
            value = provided.get(param.name)
            if value is None or value == "":
                default = param.default
                if isinstance(default, bool):
                    default = str(default).lower()
                value = ctx.prompt(param.prompt, default=default)
            values[param.name] = self._convert(param, value)
        return values

    def _convert(self, param: Param, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            if param.required:
                raise MissingInputError(f"{param.prompt.rstrip(': ')} is required!")
            return param.default
        if param.kind == "bool":
            return parse_bool(value, param.default)
        if param.kind == "int":
            try:
                return int(value)
            except (TypeError, ValueError):
                raise InvalidInputError(
                    f"{param.prompt.rstrip(': ')} must be a number, got {value!r}"
                ) from None
        return value.strip() if isinstance(value, str) else value

    def run(self, ctx, provided: Optional[dict] = None):
        kwargs = self.collect(ctx, provided)
        loggit.info("Running %s %s", self.menu, self.name)
        return self.handler(ctx, **kwargs)


@dataclass
class CommandRegistry:
    commands: dict = field(default_factory=dict)

    def command(
        self,
        menu: str,
        name: str,
        title: str,
        params: tuple = (),
        mutating: bool = False,
    ):
        """
        Decorator registering a handler ``handler(ctx, **params)``.
        """
        if menu not in MENUS:
            raise ValueError(f"Unknown menu: {menu}")

        def register(handler):
            key = (menu, name)
            if key in self.commands:
                raise ValueError(f"Command {menu} {name} registered twice")
            self.commands[key] = Command(
                menu=menu,
                name=name,
                title=title,
                handler=handler,
                params=tuple(params),
                mutating=mutating,
            )
            return handler

        return register

    def get(self, menu: str, name: str) -> Command:
        return self.commands[(menu, name)]

    def menus(self) -> list[str]:
        present = {menu for menu, _ in self.commands}
        return [menu for menu in MENUS if menu in present]

    def for_menu(self, menu: str) -> list[Command]:
        """
        Commands of one menu in registration order.
        """
        return [cmd for (m, _), cmd in self.commands.items() if m == menu]


def flag(name: str, prompt: str) -> Param:
    """
    An optional true/false parameter that defaults to false.
    """
    return Param(name, prompt, required=False, default=False, kind="bool")


REGISTRY = CommandRegistry()
command = REGISTRY.command
