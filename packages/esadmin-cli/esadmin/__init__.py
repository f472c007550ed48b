"""
esadmin - Elasticsearch and Kibana administration tool

Menu-driven and one-shot administration of an Elasticsearch cluster and its
Kibana, plus a guided snapshot restore.

Core functionality is provided by the esadmin-core package.
This package adds the CLI, the interactive menu and configuration management.
"""

__version__ = "1.0.0"

# Re-export the commonly used parts of esadmin-core
from esadmin_core import (
    ENVIRONMENTS,
    MENUS,
    REGISTRY,
    ActionError,
    Context,
    ESClientWrapper,
    EsAdminException,
    HttpStatusError,
    KibanaClient,
    RepairDataStream,
    Restore,
    create_es_client,
)

__all__ = [
    "__version__",
    # Constants
    "ENVIRONMENTS",
    "MENUS",
    # Exceptions
    "EsAdminException",
    "ActionError",
    "HttpStatusError",
    # Context and registry
    "Context",
    "REGISTRY",
    # Clients
    "ESClientWrapper",
    "KibanaClient",
    "create_es_client",
    # Actions
    "Restore",
    "RepairDataStream",
]
