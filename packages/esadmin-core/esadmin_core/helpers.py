"""Helper classes for esadmin"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from rich.console import Console

from esadmin_core.constants import (
    DEFAULT_PIPELINE_SETTING,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_RECOVERY_TIMEOUT,
    FINAL_PIPELINE_SETTING,
    ILM_POLICY_SETTING,
)
from esadmin_core.esclient import ESClientWrapper
from esadmin_core.exceptions import InvalidInputError, PreconditionError
from esadmin_core.kibana import KibanaClient


@dataclass
class RestoreDefaults:
    """
    Default answers offered by the restore prompts, taken from the environment
    file.
    """

    excluded_indices: str = ""
    features_to_restore: str = ""
    include_global_state: bool = False
    ignore_unavailable: bool = False
    include_aliases: bool = True


@dataclass
class Context:
    """
    Everything an operation needs, passed explicitly to every handler.

    Attributes:
        es (ESClientWrapper): the cluster being administered
        console (Console): where results are rendered
        prompt (Callable): ``prompt(text, default=None) -> str``
        confirm (Callable): ``confirm(text) -> bool``, true only for "y"
        kibana (KibanaClient): Kibana client, when one is configured
        origin (ESClientWrapper): the cluster snapshots were taken on, if different
        environment (str): "test" or "prod"
        dry_run (bool): log mutating requests instead of sending them
        snapshot_repository (str): repository the restore workflow reads from
        restore_defaults (RestoreDefaults): defaults for the restore prompts
        poll_interval (float): seconds between recovery polls
        recovery_timeout (float): seconds before recovery polling gives up
        output_dir (str): where exported JSON/NDJSON files are written
    """

    es: ESClientWrapper
    console: Console
    prompt: Callable
    confirm: Callable
    kibana: Optional[KibanaClient] = None
    origin: Optional[ESClientWrapper] = None
    environment: str = "test"
    dry_run: bool = False
    snapshot_repository: Optional[str] = None
    restore_defaults: RestoreDefaults = field(default_factory=RestoreDefaults)
    poll_interval: float = DEFAULT_POLL_INTERVAL
    recovery_timeout: float = DEFAULT_RECOVERY_TIMEOUT
    output_dir: str = "."

    @property
    def origin_es(self) -> ESClientWrapper:
        return self.origin if self.origin is not None else self.es

    def require_kibana(self) -> KibanaClient:
        if self.kibana is None:
            raise PreconditionError(
                "No Kibana host configured; set KIBANA_HOST in the environment file"
            )
        return self.kibana

    def choose(self, title: str, options: list[str], attempts: int = 3) -> str:
        """
        Show a numbered list and return the option picked by number or by name.

        :raises InvalidInputError: after ``attempts`` unusable answers
        """
        self.console.print(f"\n{title}")
        for number, option in enumerate(options, 1):
            self.console.print(f"{number}) {option}")
        for _ in range(attempts):
            answer = (self.prompt("Select a number", default=None) or "").strip()
            if answer in options:
                return answer
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return options[int(answer) - 1]
            self.console.print("Invalid selection. Please choose a valid option.")
        raise InvalidInputError(f"No valid selection made for: {title}")

    def skip_for_dry_run(self, description: str) -> bool:
        """
        Log what a mutating request would do and report whether to skip it.
        """
        if self.dry_run:
            logging.getLogger("esadmin.dry_run").warning("DRY-RUN: %s", description)
            self.console.print(f"[yellow]DRY-RUN:[/yellow] {description}")
        return self.dry_run

    def proceed(self, description: str) -> bool:
        """
        Gate for every mutating request: False in dry-run mode or when the user
        answers anything but "y".
        """
        if self.skip_for_dry_run(description):
            return False
        if not self.confirm(f"{description}? (y/n)"):
            self.console.print("Cancelled.")
            return False
        return True


@dataclass
class RestoreRequest:
    """
    Body of a snapshot ``_restore`` request.

    ``rename_pattern``, ``rename_replacement`` and ``ignore_index_settings`` are
    only sent when they hold a value; the other fields are always sent.
    """

    indices: str
    ignore_unavailable: bool
    include_global_state: bool
    feature_states: list[str]
    include_aliases: bool
    rename_pattern: Optional[str] = None
    rename_replacement: Optional[str] = None
    ignore_index_settings: Optional[list[str]] = None

    def to_body(self) -> dict:
        body = {
            "indices": self.indices,
            "ignore_unavailable": self.ignore_unavailable,
            "include_global_state": self.include_global_state,
            "feature_states": list(self.feature_states),
            "include_aliases": self.include_aliases,
        }
        if self.rename_pattern:
            body["rename_pattern"] = self.rename_pattern
        if self.rename_replacement:
            body["rename_replacement"] = self.rename_replacement
        if self.ignore_index_settings:
            body["ignore_index_settings"] = list(self.ignore_index_settings)
        return body


@dataclass
class DataStreamTargets:
    """
    What every backing index of a data stream should be configured with.
    """

    ilm_policy: Optional[str] = None
    default_pipeline: Optional[str] = None
    final_pipeline: Optional[str] = None

    def as_settings(self) -> dict:
        settings = {}
        if self.ilm_policy:
            settings[ILM_POLICY_SETTING] = self.ilm_policy
        if self.default_pipeline:
            settings[DEFAULT_PIPELINE_SETTING] = self.default_pipeline
        if self.final_pipeline:
            settings[FINAL_PIPELINE_SETTING] = self.final_pipeline
        return settings


@dataclass
class RepairReport:
    """
    Outcome of a backing-index repair run, one list entry per index.
    """

    data_stream: str
    targets: DataStreamTargets = field(default_factory=DataStreamTargets)
    reassigned: list[str] = field(default_factory=list)
    detached: list[str] = field(default_factory=list)
    reattached: list[str] = field(default_factory=list)
    moved: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures
