"""esadmin command line"""

from esadmin.cli.main import cli, restore_cli

__all__ = ["cli", "restore_cli"]
