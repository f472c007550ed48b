"""Tests for the command registry"""

import pytest
from esadmin_core import MENUS, REGISTRY, CommandRegistry, Param
from esadmin_core.exceptions import InvalidInputError, MissingInputError


def test_every_menu_has_commands():
    assert REGISTRY.menus() == MENUS
    for menu in MENUS:
        assert REGISTRY.for_menu(menu), menu


def test_core_commands_registered():
    for menu, name in [
        ("cluster", "health"),
        ("snapshots", "restore"),
        ("indices", "modify-settings"),
        ("datastreams", "repair"),
        ("ilm", "move-to-step"),
        ("templates", "import-component-template"),
        ("aliases", "add-to-index"),
        ("fleet", "unenroll-agents"),
        ("ingest", "pipelines"),
        ("kibana", "export-saved-objects"),
    ]:
        assert REGISTRY.get(menu, name).menu == menu


def test_mutating_flags():
    assert REGISTRY.get("indices", "delete").mutating
    assert REGISTRY.get("datastreams", "repair").mutating
    assert not REGISTRY.get("cluster", "health").mutating


def make_registry():
    registry = CommandRegistry()
    seen = {}

    @registry.command(
        "cluster",
        "demo",
        "Demo",
        params=(
            Param("name", "Name"),
            Param("size", "Size", required=False, default=10, kind="int"),
            Param("flag", "Flag", required=False, default=False, kind="bool"),
        ),
    )
    def demo(ctx, name, size=10, flag=False):
        """Demo command."""
        seen.update(name=name, size=size, flag=flag)

    return registry, seen


def test_provided_values_are_not_prompted(make_context):
    registry, seen = make_registry()
    ctx = make_context()
    registry.get("cluster", "demo").run(ctx, {"name": "x", "size": "3", "flag": "true"})
    assert seen == {"name": "x", "size": 3, "flag": True}
    assert ctx.prompt.asked == []


def test_missing_values_are_prompted_with_defaults(make_context):
    registry, seen = make_registry()
    ctx = make_context("logs")
    registry.get("cluster", "demo").run(ctx)
    assert seen == {"name": "logs", "size": 10, "flag": False}
    assert ctx.prompt.asked == ["Name", "Size", "Flag"]


def test_empty_required_value(make_context):
    registry, _ = make_registry()
    with pytest.raises(MissingInputError):
        registry.get("cluster", "demo").run(make_context(""))


def test_unreadable_bool(make_context):
    registry, _ = make_registry()
    with pytest.raises(InvalidInputError):
        registry.get("cluster", "demo").run(make_context("x", "", "maybe"))


def test_duplicate_and_unknown_menu():
    registry, _ = make_registry()
    with pytest.raises(ValueError):
        registry.command("cluster", "demo", "Again")(lambda ctx: None)
    with pytest.raises(ValueError):
        registry.command("nope", "demo", "Nope")


def test_help_is_first_docstring_line():
    registry, _ = make_registry()
    assert registry.get("cluster", "demo").help == "Demo command."


def test_unreadable_int(make_context):
    registry, _ = make_registry()
    with pytest.raises(InvalidInputError):
        registry.get("cluster", "demo").run(make_context("x", "ten"))


def test_documents_with_unreadable_size(make_context):
    with pytest.raises(InvalidInputError):
        REGISTRY.get("indices", "documents").run(make_context("logs-1", "ten"))
