"""
esadmin Core Library

Core library for administering Elasticsearch clusters and their Kibana: client
construction, the operations behind every menu entry, and the snapshot restore
and backing-index repair workflows.
"""

__version__ = "1.0.0"

# Export actions
from esadmin_core.actions import RecoveryMonitor, RepairDataStream, Restore
from esadmin_core.constants import (
    COMPLETED_ROLLOVER_STEP,
    ENVIRONMENTS,
    MENUS,
    STAGE_DONE,
)

# Export ES client utilities
from esadmin_core.esclient import (
    ESClientWrapper,
    create_es_client,
)

# Export exceptions
from esadmin_core.exceptions import (
    ActionError,
    ConfigurationError,
    ConnectionFailure,
    EsAdminException,
    HttpStatusError,
    InvalidInputError,
    MalformedResponseError,
    MissingInputError,
    PreconditionError,
    RecoveryCancelled,
    RecoveryTimeoutError,
)

# Export helpers
from esadmin_core.helpers import (
    Context,
    DataStreamTargets,
    RepairReport,
    RestoreDefaults,
    RestoreRequest,
)
from esadmin_core.kibana import KibanaClient
from esadmin_core.operations import REGISTRY
from esadmin_core.registry import Command, CommandRegistry, Param
from esadmin_core.responses import process_response

__all__ = [
    # Version
    "__version__",
    # Constants
    "COMPLETED_ROLLOVER_STEP",
    "ENVIRONMENTS",
    "MENUS",
    "STAGE_DONE",
    # Exceptions
    "ActionError",
    "ConfigurationError",
    "ConnectionFailure",
    "EsAdminException",
    "HttpStatusError",
    "InvalidInputError",
    "MalformedResponseError",
    "MissingInputError",
    "PreconditionError",
    "RecoveryCancelled",
    "RecoveryTimeoutError",
    # Helpers
    "Context",
    "DataStreamTargets",
    "RepairReport",
    "RestoreDefaults",
    "RestoreRequest",
    # Clients
    "ESClientWrapper",
    "KibanaClient",
    "create_es_client",
    "process_response",
    # Registry
    "Command",
    "CommandRegistry",
    "Param",
    "REGISTRY",
    # Actions
    "RecoveryMonitor",
    "RepairDataStream",
    "Restore",
]
