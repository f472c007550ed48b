"""Tests for the interactive menu"""

from esadmin import menu
from esadmin_core import MENUS, REGISTRY


def pick(monkeypatch, *choices):
    answers = list(choices)
    monkeypatch.setattr(menu.click, "prompt", lambda *a, **kw: answers.pop(0))
    return answers


def test_bad_answer_aborts_only_the_operation(monkeypatch, make_context, es):
    commands = [command.name for command in REGISTRY.for_menu("indices")]
    back = len(commands) + 1
    answers = pick(
        monkeypatch,
        MENUS.index("indices") + 1,
        commands.index("documents") + 1,
        back,
        len(MENUS) + 1,
    )
    menu.run_menu(make_context("logs-1", "ten"))
    assert answers == []
    es.count.assert_not_called()


def test_menu_header_shows_environment(monkeypatch, make_context):
    pick(monkeypatch, len(MENUS) + 1)
    ctx = make_context(environment="prod")
    menu.run_menu(ctx)
    assert "(prod) [main] Please select an option:" in ctx.console.export_text()
