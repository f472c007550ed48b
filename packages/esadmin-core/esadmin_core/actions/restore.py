"""Restore action for esadmin"""

import logging
import threading
import time

from rich.panel import Panel

from esadmin_core.constants import STAGE_DONE
from esadmin_core.display import show_json, show_list, show_table
from esadmin_core.exceptions import (
    PreconditionError,
    RecoveryCancelled,
    RecoveryTimeoutError,
)
from esadmin_core.helpers import Context, RestoreRequest
from esadmin_core.utilities import (
    build_index_patterns,
    distinct_recovery_stages,
    is_backing_index_of,
    latest_snapshot_for_policy,
    millis_to_string,
    name_collisions,
    names_selected_by,
    parse_bool,
    recovery_rows,
    split_csv,
)


class RecoveryMonitor:
    """
    Poll shard recovery until every shard reports DONE.

    Sleeping is done on ``cancel``, so setting the event from another thread (or
    a signal handler) ends the wait at once.

    :param es: client wrapper of the cluster the restore runs on
    :param console: where progress is printed
    :param interval: seconds between polls
    :param timeout: seconds after which polling gives up
    :param cancel: event that stops polling when set
    :param clock: monotonic clock, replaceable in tests
    """

    def __init__(
        self,
        es,
        console,
        interval: float,
        timeout: float,
        cancel: threading.Event = None,
        clock=time.monotonic,
    ) -> None:
        self.loggit = logging.getLogger("esadmin.restore")
        self.es = es
        self.console = console
        self.interval = interval
        self.timeout = timeout
        self.cancel = cancel or threading.Event()
        self.clock = clock

    def poll(self) -> set:
        recovery = self.es.indices.recovery()
        stages = distinct_recovery_stages(recovery)
        if not stages:
            self.loggit.warning("No shard recoveries reported yet")
            self.console.print("No shard recoveries reported yet")
        else:
            self.console.print(f"Recovery stages: {', '.join(sorted(stages))}")
        self.loggit.debug("Recovery rows: %s", recovery_rows(recovery))
        return stages

    def wait(self) -> set:
        """
        Wait one interval, then poll until the stage set is exactly {DONE}.

        :returns: the final stage set
        :raises RecoveryTimeoutError: if the deadline passes first
        :raises RecoveryCancelled: if the cancel event is set
        """
        deadline = self.clock() + self.timeout
        self._sleep(self.interval, deadline)
        while True:
            stages = self.poll()
            if stages == {STAGE_DONE}:
                self.loggit.info("All shards recovered")
                return stages
            if self.clock() >= deadline:
                raise RecoveryTimeoutError(
                    f"Recovery not finished after {self.timeout}s, "
                    f"stages still reported: {sorted(stages) or 'none'}"
                )
            self._sleep(self.interval, deadline)

    def _sleep(self, seconds: float, deadline: float) -> None:
        remaining = max(0, min(seconds, deadline - self.clock()))
        if self.cancel.wait(remaining):
            raise RecoveryCancelled("Recovery polling was cancelled")


class Restore:
    """
    Restore the latest snapshot an SLM policy took into the current cluster.

    The workflow asks which repository and policy to use, shows the snapshot,
    collects the restore options, reports name collisions and only submits the
    restore after an explicit "y". Shard recovery is then polled until every
    shard is DONE and cluster health is shown.

    :param ctx: the execution context
    :param cancel: event that stops recovery polling when set

    :methods:
        do_dry_run: Walk through the workflow and show the request without sending it.
        do_action: Walk through the workflow and submit the restore.
    """

    def __init__(self, ctx: Context, cancel: threading.Event = None) -> None:
        self.loggit = logging.getLogger("esadmin.restore")
        self.loggit.debug("Initializing Restore")
        self.ctx = ctx
        self.cancel = cancel or threading.Event()
        self.repository = None
        self.snapshot = None
        self.request = None

    def select_repository(self) -> str:
        repositories = sorted(self.ctx.es.snapshot.get_repository())
        if not repositories:
            raise PreconditionError("No snapshot repositories are registered")
        configured = self.ctx.snapshot_repository
        if configured:
            if configured not in repositories:
                raise PreconditionError(
                    f"Snapshot repository {configured} does not exist; "
                    f"available: {', '.join(repositories)}"
                )
            return configured
        return self.ctx.choose("Available snapshot repositories:", repositories)

    def select_policy(self) -> str:
        policies = sorted(self.ctx.origin_es.slm.get_lifecycle())
        if not policies:
            raise PreconditionError("No SLM policies found on the origin cluster")
        return self.ctx.choose("Available SLM policies:", policies)

    def find_snapshot(self, repository: str, policy: str):
        """
        :returns: the newest snapshot taken by ``policy`` in ``repository``, or
            None when the policy took none there
        """
        body = self.ctx.es.snapshot.get(repository=repository, snapshot="_all")
        snapshot = latest_snapshot_for_policy(body.get("snapshots", []), policy)
        if snapshot is None:
            self.loggit.warning(
                "No snapshots found for policy %s in repository %s", policy, repository
            )
            self.ctx.console.print(
                f"[yellow]No snapshots found for policy {policy} "
                f"in repository {repository}[/yellow]"
            )
        return snapshot

    def show_snapshot(self, snapshot: dict) -> None:
        show_table(
            self.ctx,
            "Latest snapshot",
            ["Field", "Value"],
            [
                ("snapshot", snapshot.get("snapshot", "")),
                ("state", snapshot.get("state", "")),
                ("start time", millis_to_string(snapshot.get("start_time_in_millis"))),
                ("indices", len(snapshot.get("indices", []))),
                ("data streams", len(snapshot.get("data_streams", []))),
            ],
        )
        show_list(self.ctx, "Indices in snapshot", sorted(snapshot.get("indices", [])))
        streams = sorted(snapshot.get("data_streams", []))
        show_list(self.ctx, "Data streams in snapshot", streams)
        features = [f.get("feature_name") for f in snapshot.get("feature_states", [])]
        features = sorted(filter(None, features))
        show_list(self.ctx, "Feature states in snapshot", features)

    def build_request(self) -> RestoreRequest:
        """
        Ask for every restore option, offering the configured defaults.
        """
        defaults = self.ctx.restore_defaults
        prompt = self.ctx.prompt
        if defaults.excluded_indices:
            self.ctx.console.print(
                f"Always excluded: {defaults.excluded_indices}"
            )
        included = prompt(
            "Index patterns to include (comma separated, empty for all)", default=""
        )
        excluded = prompt(
            "Additional patterns to exclude (comma separated, each starting with -)",
            default="",
        )
        features = prompt(
            "Feature states to restore (comma separated)",
            default=defaults.features_to_restore,
        )
        include_global_state = parse_bool(
            prompt(
                "Include global state? (true/false)",
                default=str(defaults.include_global_state).lower(),
            ),
            defaults.include_global_state,
        )
        ignore_unavailable = parse_bool(
            prompt(
                "Ignore unavailable indices? (true/false)",
                default=str(defaults.ignore_unavailable).lower(),
            ),
            defaults.ignore_unavailable,
        )
        include_aliases = parse_bool(
            prompt(
                "Include aliases? (true/false)",
                default=str(defaults.include_aliases).lower(),
            ),
            defaults.include_aliases,
        )
        rename_pattern = prompt("Rename pattern (empty for none)", default="")
        rename_replacement = None
        if rename_pattern:
            rename_replacement = prompt(
                "Rename replacement (e.g. restored-$1)", default=""
            )
        ignore_index_settings = prompt(
            "Index settings to ignore (comma separated, empty for none)", default=""
        )
        return RestoreRequest(
            indices=build_index_patterns(
                included, defaults.excluded_indices, excluded
            ),
            ignore_unavailable=ignore_unavailable,
            include_global_state=include_global_state,
            feature_states=split_csv(features),
            include_aliases=include_aliases,
            rename_pattern=rename_pattern or None,
            rename_replacement=rename_replacement or None,
            ignore_index_settings=split_csv(ignore_index_settings) or None,
        )

    def collisions(self, snapshot: dict, request: RestoreRequest) -> dict:
        """
        Indices and data streams the restore would create that already exist.
        Only the names the request selects count, along with the backing indices
        of the selected data streams.
        """
        es = self.ctx.es
        existing_indices = [
            row["index"]
            for row in es.cat.indices(expand_wildcards="all", format="json", h="index")
        ]
        existing_streams = [
            ds["name"]
            for ds in es.indices.get_data_stream(name="*", expand_wildcards="all").get(
                "data_streams", []
            )
        ]
        all_streams = snapshot.get("data_streams", [])
        streams = names_selected_by(all_streams, request.indices)
        selected = set(names_selected_by(snapshot.get("indices", []), request.indices))
        indices = []
        for index in snapshot.get("indices", []):
            owners = [ds for ds in all_streams if is_backing_index_of(index, ds)]
            # backing indices follow their data stream
            if owners:
                if any(owner in streams for owner in owners):
                    indices.append(index)
            elif index in selected:
                indices.append(index)
        return {
            "indices": name_collisions(
                indices,
                existing_indices,
                request.rename_pattern,
                request.rename_replacement,
            ),
            "data_streams": name_collisions(
                streams,
                existing_streams,
                request.rename_pattern,
                request.rename_replacement,
            ),
        }

    def show_collisions(self, collisions: dict) -> None:
        if not any(collisions.values()):
            self.ctx.console.print(
                "[green]No name collisions with the target cluster[/green]"
            )
            return
        self.loggit.warning(
            "%d indices and %d data streams already exist in the target cluster",
            len(collisions["indices"]),
            len(collisions["data_streams"]),
        )
        show_list(
            self.ctx,
            "Existing indices the restore would collide with",
            collisions["indices"],
        )
        show_list(
            self.ctx,
            "Existing data streams the restore would collide with",
            collisions["data_streams"],
        )

    def prepare(self) -> bool:
        """
        Run discovery and collect the request.

        :returns: False when there is nothing to restore
        """
        self.repository = self.select_repository()
        policy = self.select_policy()
        self.snapshot = self.find_snapshot(self.repository, policy)
        if self.snapshot is None:
            return False
        self.show_snapshot(self.snapshot)
        self.request = self.build_request()
        show_json(self.ctx, self.request.to_body(), title="Restore request")
        self.show_collisions(self.collisions(self.snapshot, self.request))
        return True

    def do_dry_run(self) -> None:
        """
        Perform a dry-run of the restore: nothing is submitted.
        """
        self.loggit.info("DRY-RUN MODE.  No changes will be made.")
        if not self.prepare():
            return
        self.loggit.info(
            "DRY-RUN: restore %s from %s with %s",
            self.snapshot["snapshot"],
            self.repository,
            self.request.to_body(),
        )
        self.ctx.console.print(
            f"[yellow]DRY-RUN:[/yellow] would restore {self.snapshot['snapshot']} "
            f"from {self.repository}"
        )

    def do_action(self) -> None:
        """
        Submit the restore once confirmed, then wait for recovery and show
        cluster health.
        """
        self.loggit.debug("Starting Restore action")
        if not self.prepare():
            return
        name = self.snapshot["snapshot"]
        question = f"Restore snapshot {name} from {self.repository}? (y/n)"
        if not self.ctx.confirm(question):
            self.loggit.info("Restore of %s cancelled by the user", name)
            self.ctx.console.print("Restore cancelled.")
            return
        self.loggit.info("Restoring %s from %s", name, self.repository)
        response = self.ctx.es.snapshot.restore(
            repository=self.repository, snapshot=name, **self.request.to_body()
        )
        show_json(self.ctx, response, title="Restore response")
        monitor = RecoveryMonitor(
            self.ctx.es,
            self.ctx.console,
            interval=self.ctx.poll_interval,
            timeout=self.ctx.recovery_timeout,
            cancel=self.cancel,
        )
        monitor.wait()
        health = self.ctx.es.cluster.health()
        self.ctx.console.print(
            Panel(
                f"Snapshot {name} restored. Cluster status: {health.get('status')}",
                title="Restore complete",
                border_style="green",
            )
        )
        show_json(self.ctx, health, title="Cluster health")
