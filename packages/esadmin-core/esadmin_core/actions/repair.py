"""Backing-index repair action for esadmin"""

import logging
import time

from esadmin_core.constants import (
    COMPLETED_ROLLOVER_STEP,
    DEFAULT_PIPELINE_SETTING,
    FINAL_PIPELINE_SETTING,
    ILM_POLICY_SETTING,
    ILM_STEP_ATTEMPTS,
    ILM_STEP_WAIT,
)
from esadmin_core.display import show_list, show_table
from esadmin_core.exceptions import ActionError, EsAdminException, HttpStatusError
from esadmin_core.helpers import Context, DataStreamTargets, RepairReport
from esadmin_core.utilities import (
    backing_index_pattern,
    detached_backing_indices,
    resolve_template_settings,
)


class RepairDataStream:
    """
    Bring every backing index of a data stream back under the stream's ILM
    policy and ingest pipelines, and reattach backing indices that lost their
    link to the stream (typically after a partial snapshot restore).

    Steps:

    1. Resolve the ILM policy and pipelines: the data stream's own ``ilm_policy``
       first, then the settings its index template resolves to.
    2. For every attached index, remove the ILM policy and assign the targets.
    3. Detached indices are those named like the stream's backing indices that
       the stream does not list.
    4. Each detached index is added back to the stream, gets the targets
       assigned and is moved to ``hot/rollover/set-indexing-complete`` so ILM
       treats it as an already rolled-over index.
    5. An attached index other than the write index that ILM still keeps in
       the ``new`` phase or short of the end of ``rollover`` is moved the same
       way, so a rerun finishes a move an earlier run could not make.

    A failure on one index is recorded in the report and the next index is still
    processed.

    :param ctx: the execution context
    :param data_stream: name of the data stream to repair
    :param sleep: called between polls of the ILM explain API

    :methods:
        do_dry_run: Show the plan without changing anything.
        do_action: Repair the data stream and return the RepairReport.
    """

    def __init__(self, ctx: Context, data_stream: str, sleep=time.sleep) -> None:
        self.loggit = logging.getLogger("esadmin.repair")
        self.loggit.debug("Initializing RepairDataStream for %s", data_stream)
        self.ctx = ctx
        self.es = ctx.es
        self.data_stream = data_stream
        self.sleep = sleep

    def get_data_stream(self) -> dict:
        streams = self.es.indices.get_data_stream(name=self.data_stream).get(
            "data_streams", []
        )
        if not streams:
            raise ActionError(f"Data stream {self.data_stream} not found")
        return streams[0]

    def resolve_targets(self, stream: dict) -> DataStreamTargets:
        """
        Find the ILM policy and ingest pipelines new backing indices would get.
        """
        settings = {}
        template_name = stream.get("template")
        if template_name:
            templates = self.es.indices.get_index_template(name=template_name).get(
                "index_templates", []
            )
            if templates:
                index_template = templates[0]["index_template"]
                components = {}
                for name in index_template.get("composed_of", []):
                    try:
                        body = self.es.cluster.get_component_template(name=name)
                    except HttpStatusError as e:
                        if e.status != 404:
                            raise
                        continue
                    for item in body.get("component_templates", []):
                        components[item["name"]] = item["component_template"]
                settings = resolve_template_settings(index_template, components)
            else:
                self.loggit.warning("Index template %s not found", template_name)
        targets = DataStreamTargets(
            ilm_policy=stream.get("ilm_policy") or settings.get(ILM_POLICY_SETTING),
            default_pipeline=settings.get(DEFAULT_PIPELINE_SETTING),
            final_pipeline=settings.get(FINAL_PIPELINE_SETTING),
        )
        if not targets.ilm_policy:
            self.loggit.warning(
                "No ILM policy found for data stream %s; indices stay unmanaged",
                self.data_stream,
            )
        self.loggit.info("Targets for %s: %s", self.data_stream, targets)
        return targets

    def attached_indices(self, stream: dict) -> list[str]:
        return [index["index_name"] for index in stream.get("indices", [])]

    def find_detached(self, attached: list[str]) -> list[str]:
        matching = self.es.indices.get(
            index=backing_index_pattern(self.data_stream), expand_wildcards="all"
        )
        return detached_backing_indices(matching, attached, self.data_stream)

    def reassign(self, index: str, targets: DataStreamTargets) -> None:
        """
        Remove the index's ILM policy, then assign the targets.
        """
        self.es.ilm.remove_policy(index=index)
        settings = targets.as_settings()
        if settings:
            self.es.indices.put_settings(index=index, settings=settings)

    def reattach(self, index: str) -> None:
        self.es.indices.modify_data_stream(
            actions=[
                {"add_backing_index": {"data_stream": self.data_stream, "index": index}}
            ]
        )

    def current_step(self, index: str) -> dict:
        """
        The index's current ILM step, waiting a bounded time for ILM to report
        one after the policy was (re)assigned.

        :raises ActionError: if no step is reported within the wait
        """
        for attempt in range(ILM_STEP_ATTEMPTS):
            explain = self.es.ilm.explain_lifecycle(index=index).get("indices", {})
            state = explain.get(index, {})
            current = {
                "phase": state.get("phase"),
                "action": state.get("action"),
                "name": state.get("step"),
            }
            if all(current.values()):
                return current
            if attempt + 1 < ILM_STEP_ATTEMPTS:
                self.loggit.debug("No ILM step reported for %s yet", index)
                self.sleep(ILM_STEP_WAIT)
        raise ActionError(f"ILM does not report a current step for {index}")

    @staticmethod
    def awaiting_completed_step(current: dict) -> bool:
        """
        True for a non-write index ILM has not yet moved past rollover: still in
        the ``new`` phase, or inside the rollover action short of its last step.
        """
        if current == COMPLETED_ROLLOVER_STEP:
            return False
        return current["phase"] == "new" or current["action"] == "rollover"

    def move_to_completed(self, index: str, current: dict = None) -> bool:
        """
        Move the index to the completed rollover step.

        :returns: False when the index already sits on that step
        """
        current = current or self.current_step(index)
        if current == COMPLETED_ROLLOVER_STEP:
            self.loggit.info("%s is already at the completed rollover step", index)
            return False
        self.es.ilm.move_to_step(
            index=index, current_step=current, next_step=COMPLETED_ROLLOVER_STEP
        )
        return True

    def plan(self):
        stream = self.get_data_stream()
        targets = self.resolve_targets(stream)
        attached = self.attached_indices(stream)
        detached = self.find_detached(attached)
        show_table(
            self.ctx,
            f"Repair plan for {self.data_stream}",
            ["Setting", "Value"],
            [
                ("ilm policy", targets.ilm_policy or "none"),
                ("default pipeline", targets.default_pipeline or "none"),
                ("final pipeline", targets.final_pipeline or "none"),
                ("attached indices", len(attached)),
                ("detached indices", len(detached)),
            ],
        )
        show_list(self.ctx, "Detached backing indices", detached)
        if not detached:
            self.loggit.warning("No detached backing indices for %s", self.data_stream)
        return targets, attached, detached

    def do_dry_run(self) -> RepairReport:
        self.loggit.info("DRY-RUN MODE.  No changes will be made.")
        targets, attached, detached = self.plan()
        for index in attached:
            self.loggit.info("DRY-RUN: reassign %s to %s", index, targets.as_settings())
        for index in detached:
            self.loggit.info("DRY-RUN: reattach %s to %s", index, self.data_stream)
        return RepairReport(
            data_stream=self.data_stream, targets=targets, detached=detached
        )

    def do_action(self) -> RepairReport:
        """
        Repair the data stream.

        :returns: what was done, with per-index failures; None if the user
            declined
        """
        self.loggit.debug("Starting RepairDataStream action")
        targets, attached, detached = self.plan()
        if not self.ctx.confirm(f"Repair data stream {self.data_stream}? (y/n)"):
            self.ctx.console.print("Repair cancelled.")
            return None
        report = RepairReport(
            data_stream=self.data_stream, targets=targets, detached=detached
        )
        write_index = attached[-1] if attached else None
        for index in attached:
            try:
                self.reassign(index, targets)
                report.reassigned.append(index)
                if index != write_index:
                    current = self.current_step(index)
                    if self.awaiting_completed_step(current) and self.move_to_completed(
                        index, current
                    ):
                        report.moved.append(index)
                self.ctx.console.print(f"Reassigned {index}")
            except EsAdminException as e:
                self.loggit.error("Failed to reassign %s: %s", index, e)
                report.failures[index] = str(e)
        for index in detached:
            try:
                self.reattach(index)
                report.reattached.append(index)
                self.reassign(index, targets)
                if self.move_to_completed(index):
                    report.moved.append(index)
                self.ctx.console.print(f"Reattached {index}")
            except EsAdminException as e:
                self.loggit.error("Failed to repair %s: %s", index, e)
                report.failures[index] = str(e)
        self.show_report(report)
        return report

    def show_report(self, report: RepairReport) -> None:
        show_table(
            self.ctx,
            f"Repair of {report.data_stream}",
            ["Result", "Count"],
            [
                ("reassigned", len(report.reassigned)),
                ("reattached", len(report.reattached)),
                ("moved to completed rollover", len(report.moved)),
                ("failed", len(report.failures)),
            ],
        )
        if report.failures:
            show_table(
                self.ctx,
                "Failures",
                ["Index", "Error"],
                sorted(report.failures.items()),
            )
