"""esadmin action modules

The two stateful workflows. Each action class provides do_action() and
do_dry_run() methods.
"""

from esadmin_core.actions.repair import RepairDataStream
from esadmin_core.actions.restore import RecoveryMonitor, Restore

__all__ = [
    "RecoveryMonitor",
    "RepairDataStream",
    "Restore",
]
