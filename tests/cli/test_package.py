"""
Tests for package import verification and the command line

These tests verify that the esadmin package:
1. Can be imported successfully
2. Imports no cloud object storage SDK
3. Has its commands and entry points registered
4. Exits with status 1 on a missing or unknown environment
"""

import ast
from pathlib import Path

from click.testing import CliRunner


def test_package_imports_successfully():
    """Test that the esadmin package can be imported"""
    import esadmin

    assert esadmin is not None
    assert hasattr(esadmin, "__version__")
    assert esadmin.__version__ == "1.0.0"


def test_submodules_import_successfully():
    """Test that all submodules can be imported"""
    import esadmin.cli
    import esadmin.config
    import esadmin.menu
    import esadmin_core.actions
    import esadmin_core.constants
    import esadmin_core.exceptions
    import esadmin_core.operations

    assert esadmin_core.exceptions is not None
    assert esadmin_core.constants is not None
    assert esadmin.cli is not None
    assert esadmin_core.actions is not None
    assert esadmin_core.operations is not None
    assert esadmin.config is not None
    assert esadmin.menu is not None


def test_no_object_storage_imports_in_package():
    """Test that no cloud storage SDK is imported; repositories go through ES"""
    import esadmin
    import esadmin_core

    forbidden = ("boto3", "botocore", "azure", "google")
    found = []
    for package in (esadmin, esadmin_core):
        package_dir = Path(package.__file__).parent
        for py_file in package_dir.rglob("*.py"):
            with open(py_file) as f:
                tree = ast.parse(f.read())
            for node in ast.walk(tree):
                if isinstance(node, ast.Import):
                    for alias in node.names:
                        if alias.name.startswith(forbidden):
                            found.append(f"{py_file.name}: import {alias.name}")
                elif isinstance(node, ast.ImportFrom):
                    if node.module and node.module.startswith(forbidden):
                        found.append(f"{py_file.name}: from {node.module} import ...")

    assert len(found) == 0, "Found object storage imports:\n" + "\n".join(found)


def test_entry_point_registration():
    """Test that the CLI entry point is properly configured"""
    import click
    from esadmin.cli.main import cli, restore_cli
    from esadmin_core import MENUS, REGISTRY

    assert isinstance(cli, click.core.Group)
    assert isinstance(restore_cli, click.core.Command)

    for menu in MENUS:
        assert menu in cli.commands, f"Menu '{menu}' not found in CLI"
        group = cli.commands[menu]
        for command in REGISTRY.for_menu(menu):
            assert command.name in group.commands, f"{menu} {command.name} missing"


def test_options_follow_params():
    from esadmin.cli.main import cli

    command = cli.commands["ilm"].commands["move-to-step"]
    names = {param.name for param in command.params}
    assert {"index", "current_phase", "next_name"} <= names


def test_missing_environment_exits_1():
    from esadmin.cli.main import cli

    result = CliRunner().invoke(cli, [])
    assert result.exit_code == 1
    assert "Usage" in result.output


def test_unknown_environment_exits_1():
    from esadmin.cli.main import cli

    result = CliRunner().invoke(cli, ["staging"])
    assert result.exit_code == 1


def test_missing_environment_file_exits_1(tmp_path):
    from esadmin.cli.main import cli

    args = ["--env-dir", str(tmp_path), "test", "cluster", "health"]
    result = CliRunner().invoke(cli, args)
    assert result.exit_code == 1
    assert "Configuration error" in result.output


def test_menu_exit(tmp_path):
    from esadmin.cli.main import cli
    from esadmin_core import MENUS

    (tmp_path / ".env.test").write_text("ES_HOST=https://localhost:9200\n")
    exit_option = str(len(MENUS) + 1)
    args = ["--env-dir", str(tmp_path), "test"]
    result = CliRunner().invoke(cli, args, input=f"{exit_option}\n")
    assert result.exit_code == 0, result.output
    assert "(test) [main] Please select an option:" in result.output


def test_prod_banner(tmp_path):
    from esadmin.cli.main import PROD_BANNER, cli
    from esadmin_core import MENUS

    (tmp_path / ".env.prod").write_text("ES_HOST=https://localhost:9200\n")
    exit_option = str(len(MENUS) + 1)
    args = ["--env-dir", str(tmp_path), "prod"]
    result = CliRunner().invoke(cli, args, input=f"{exit_option}\n")
    assert PROD_BANNER in result.output


def test_confirm_requires_exact_y(monkeypatch):
    from esadmin.cli import main

    for answer, expected in [("y", True), ("Y", False), ("yes", False), ("", False)]:
        monkeypatch.setattr(
            main.click, "prompt", lambda *a, answer=answer, **kw: answer
        )
        assert main.confirm("Proceed? (y/n)") is expected


def test_options_after_environment(tmp_path):
    from esadmin.cli.main import cli
    from esadmin_core import MENUS

    (tmp_path / ".env.test").write_text("ES_HOST=https://localhost:9200\n")
    exit_option = str(len(MENUS) + 1)
    args = ["test", "--verbose", "--env-dir", str(tmp_path), "--dry-run"]
    result = CliRunner().invoke(cli, args, input=f"{exit_option}\n")
    assert result.exit_code == 0, result.output
    assert "(test) [main] Please select an option:" in result.output


def test_command_options_stay_with_the_command():
    from esadmin.cli.main import hoist_global_options

    args = ["test", "--verbose", "ingest", "pipelines", "--verbose", "true"]
    assert hoist_global_options(args) == [
        "--verbose",
        "test",
        "ingest",
        "pipelines",
        "--verbose",
        "true",
    ]
    args = ["--env-dir", "envs", "prod", "--dry-run", "--output-dir", "out", "ilm"]
    assert hoist_global_options(args) == [
        "--dry-run",
        "--output-dir",
        "out",
        "--env-dir",
        "envs",
        "prod",
        "ilm",
    ]
