"""Constants for esadmin"""

ENVIRONMENTS = ["test", "prod"]

# Menus, in display order
MENUS = [
    "cluster",
    "snapshots",
    "indices",
    "datastreams",
    "ilm",
    "templates",
    "aliases",
    "fleet",
    "ingest",
    "kibana",
]

# Shard recovery stages reported by _recovery
STAGE_INIT = "INIT"
STAGE_INDEX = "INDEX"
STAGE_VERIFY_INDEX = "VERIFY_INDEX"
STAGE_TRANSLOG = "TRANSLOG"
STAGE_FINALIZE = "FINALIZE"
STAGE_DONE = "DONE"

DEFAULT_POLL_INTERVAL = 10
DEFAULT_RECOVERY_TIMEOUT = 3600

DEFAULT_INCLUDED_INDICES = "*"

# ILM step a reattached backing index is moved to, so that it counts as a
# finished (non-write) index instead of retrying rollover
COMPLETED_ROLLOVER_STEP = {
    "phase": "hot",
    "action": "rollover",
    "name": "set-indexing-complete",
}

# ILM fills in the new lifecycle state of an index asynchronously
ILM_STEP_ATTEMPTS = 10
ILM_STEP_WAIT = 1.0

ILM_POLICY_SETTING = "index.lifecycle.name"
DEFAULT_PIPELINE_SETTING = "index.default_pipeline"
FINAL_PIPELINE_SETTING = "index.final_pipeline"

BACKING_INDEX_PREFIX = ".ds-"

# Fleet API page size
FLEET_PAGE_SIZE = 100

DEFAULT_DOCUMENT_COUNT = 10
