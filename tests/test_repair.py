"""Tests for the backing-index repair workflow"""

import pytest
from esadmin_core import REGISTRY, ActionError, HttpStatusError, RepairDataStream
from esadmin_core.constants import (
    COMPLETED_ROLLOVER_STEP,
    ILM_STEP_ATTEMPTS,
    ILM_STEP_WAIT,
)

STREAM = "logs-app-default"
OLD = ".ds-logs-app-default-2025.01.01-000001"
OLDER = ".ds-logs-app-default-2024.12.01-000000"
WRITE = ".ds-logs-app-default-2025.01.02-000002"
OTHER_STREAM = ".ds-logs-app-default-extra-2025.01.01-000001"

TARGET_SETTINGS = {
    "index.lifecycle.name": "logs-policy",
    "index.default_pipeline": "logs-default",
    "index.final_pipeline": "logs-final",
}


@pytest.fixture
def stream(es):
    es.indices.get_data_stream.return_value = {
        "data_streams": [
            {
                "name": STREAM,
                "template": "logs-app",
                "indices": [{"index_name": WRITE}],
            }
        ]
    }
    es.indices.get_index_template.return_value = {
        "index_templates": [
            {
                "name": "logs-app",
                "index_template": {
                    "index_patterns": ["logs-app-*"],
                    "composed_of": ["logs-settings", "logs-missing"],
                    "template": {
                        "settings": {"index": {"final_pipeline": "logs-final"}}
                    },
                },
            }
        ]
    }

    def component(name):
        if name == "logs-missing":
            raise HttpStatusError(404, "not found")
        return {
            "component_templates": [
                {
                    "name": name,
                    "component_template": {
                        "template": {
                            "settings": {
                                "index": {
                                    "lifecycle": {"name": "logs-policy"},
                                    "default_pipeline": "logs-default",
                                    "final_pipeline": "overridden",
                                }
                            }
                        }
                    },
                }
            ]
        }

    es.cluster.get_component_template.side_effect = component
    es.indices.get.return_value = {OLD: {}, WRITE: {}, OTHER_STREAM: {}}
    es.ilm.explain_lifecycle.return_value = {
        "indices": {OLD: {"phase": "new", "action": "complete", "step": "complete"}}
    }
    return es


def test_targets_resolved_from_templates(stream, make_context):
    repair = RepairDataStream(make_context(), STREAM)
    targets = repair.resolve_targets(repair.get_data_stream())
    assert targets.as_settings() == TARGET_SETTINGS


def test_data_stream_policy_wins_over_template(stream, make_context):
    stream.indices.get_data_stream.return_value["data_streams"][0]["ilm_policy"] = "own"
    repair = RepairDataStream(make_context(), STREAM)
    targets = repair.resolve_targets(repair.get_data_stream())
    assert targets.ilm_policy == "own"


def test_detached_index_is_reattached_and_moved(stream, make_context):
    report = RepairDataStream(make_context(), STREAM).do_action()

    assert report.ok
    assert report.detached == [OLD]
    assert report.reattached == [OLD]
    assert report.moved == [OLD]
    assert report.reassigned == [WRITE]
    stream.indices.modify_data_stream.assert_called_once_with(
        actions=[{"add_backing_index": {"data_stream": STREAM, "index": OLD}}]
    )
    stream.ilm.move_to_step.assert_called_once_with(
        index=OLD,
        current_step={"phase": "new", "action": "complete", "name": "complete"},
        next_step=COMPLETED_ROLLOVER_STEP,
    )
    for index in (WRITE, OLD):
        stream.indices.put_settings.assert_any_call(
            index=index, settings=TARGET_SETTINGS
        )


def test_policy_removed_before_reassignment(stream, make_context):
    RepairDataStream(make_context(), STREAM).do_action()
    calls = [
        (name, kwargs["index"])
        for name, _, kwargs in stream.mock_calls
        if name in ("ilm.remove_policy", "indices.put_settings")
    ]
    assert calls == [
        ("ilm.remove_policy", WRITE),
        ("indices.put_settings", WRITE),
        ("ilm.remove_policy", OLD),
        ("indices.put_settings", OLD),
    ]


def test_rerun_is_idempotent(stream, make_context):
    stream.indices.get_data_stream.return_value["data_streams"][0]["indices"] = [
        {"index_name": OLD},
        {"index_name": WRITE},
    ]
    stream.ilm.explain_lifecycle.return_value = {
        "indices": {
            OLD: {"phase": "hot", "action": "rollover", "step": "set-indexing-complete"}
        }
    }
    report = RepairDataStream(make_context(), STREAM).do_action()

    assert report.ok
    assert report.detached == []
    stream.indices.modify_data_stream.assert_not_called()
    stream.ilm.move_to_step.assert_not_called()


def test_already_completed_step_is_not_moved(stream, make_context):
    stream.ilm.explain_lifecycle.return_value = {
        "indices": {
            OLD: {"phase": "hot", "action": "rollover", "step": "set-indexing-complete"}
        }
    }
    report = RepairDataStream(make_context(), STREAM).do_action()
    assert report.reattached == [OLD]
    assert report.moved == []
    stream.ilm.move_to_step.assert_not_called()


def test_failure_on_one_index_does_not_stop_the_others(stream, make_context):
    stream.indices.get.return_value = {OLDER: {}, OLD: {}, WRITE: {}}

    def modify(actions):
        if actions[0]["add_backing_index"]["index"] == OLDER:
            raise HttpStatusError(400, "illegal_argument_exception")
        return {"acknowledged": True}

    stream.indices.modify_data_stream.side_effect = modify
    report = RepairDataStream(make_context(), STREAM).do_action()

    assert not report.ok
    assert list(report.failures) == [OLDER]
    assert report.reattached == [OLD]


def test_repair_command_fails_when_an_index_failed(stream, make_context):
    stream.indices.modify_data_stream.side_effect = HttpStatusError(400, "bad")
    with pytest.raises(ActionError):
        REGISTRY.get("datastreams", "repair").run(make_context(), {"name": STREAM})


def test_declined_repair_changes_nothing(stream, make_context):
    assert RepairDataStream(make_context(confirm="n"), STREAM).do_action() is None
    stream.ilm.remove_policy.assert_not_called()
    stream.indices.modify_data_stream.assert_not_called()


def test_dry_run_changes_nothing(stream, make_context):
    report = RepairDataStream(make_context(dry_run=True), STREAM).do_dry_run()
    assert report.detached == [OLD]
    stream.ilm.remove_policy.assert_not_called()
    stream.indices.put_settings.assert_not_called()


def test_rerun_moves_attached_index_left_in_new_phase(stream, make_context):
    stream.indices.get_data_stream.return_value["data_streams"][0]["indices"] = [
        {"index_name": OLD},
        {"index_name": WRITE},
    ]
    report = RepairDataStream(make_context(), STREAM).do_action()

    assert report.ok
    assert report.reattached == []
    assert report.reassigned == [OLD, WRITE]
    assert report.moved == [OLD]
    stream.ilm.move_to_step.assert_called_once_with(
        index=OLD,
        current_step={"phase": "new", "action": "complete", "name": "complete"},
        next_step=COMPLETED_ROLLOVER_STEP,
    )
    stream.ilm.explain_lifecycle.assert_called_once_with(index=OLD)


def test_waits_for_ilm_to_report_a_step(stream, make_context):
    waits = []
    stream.ilm.explain_lifecycle.side_effect = [
        {"indices": {OLD: {"index": OLD, "managed": True}}},
        {"indices": {OLD: {"phase": "new"}}},
        {"indices": {OLD: {"phase": "new", "action": "complete", "step": "complete"}}},
    ]
    repair = RepairDataStream(make_context(), STREAM, sleep=waits.append)
    report = repair.do_action()

    assert report.ok
    assert report.moved == [OLD]
    assert waits == [ILM_STEP_WAIT, ILM_STEP_WAIT]
    stream.ilm.move_to_step.assert_called_once_with(
        index=OLD,
        current_step={"phase": "new", "action": "complete", "name": "complete"},
        next_step=COMPLETED_ROLLOVER_STEP,
    )


def test_no_step_reported_is_recorded_as_failure(stream, make_context):
    waits = []
    stream.ilm.explain_lifecycle.return_value = {"indices": {OLD: {}}}
    report = RepairDataStream(make_context(), STREAM, sleep=waits.append).do_action()

    assert not report.ok
    assert report.reattached == [OLD]
    assert report.moved == []
    assert "does not report a current step" in report.failures[OLD]
    assert len(waits) == ILM_STEP_ATTEMPTS - 1
    stream.ilm.move_to_step.assert_not_called()
