"""esadmin operations

Importing this package registers every operation with the command registry,
one module per menu.
"""

from esadmin_core.operations import (  # noqa: F401
    aliases,
    cluster,
    datastreams,
    fleet,
    ilm,
    indices,
    ingest,
    kibana,
    snapshots,
    templates,
)
from esadmin_core.registry import REGISTRY

__all__ = ["REGISTRY"]
