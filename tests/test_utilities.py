import pytest
from esadmin_core.exceptions import InvalidInputError, MissingInputError
from esadmin_core.utilities import (
    build_index_patterns,
    detached_backing_indices,
    distinct_recovery_stages,
    dotted_setting_to_body,
    ilm_policy_rows,
    latest_snapshot_for_policy,
    load_json_file,
    name_collisions,
    names_selected_by,
    parse_bool,
    read_names_from_file,
    resolve_template_settings,
    split_csv,
    templates_matching_index,
    write_export,
)


def test_split_csv():
    assert split_csv(" a, b,,c ") == ["a", "b", "c"]
    assert split_csv("") == []


@pytest.mark.parametrize(
    "value,expected",
    [("true", True), ("FALSE", False), ("", False), (True, True)],
)
def test_parse_bool(value, expected):
    assert parse_bool(value, default=False) is expected


def test_parse_bool_rejects_garbage():
    with pytest.raises(InvalidInputError):
        parse_bool("maybe")


def test_index_patterns_default_to_everything():
    assert build_index_patterns() == "*"
    patterns = build_index_patterns("", "-.security*", "-.kibana*")
    assert patterns == "*,-.security*,-.kibana*"


def test_index_patterns_keep_user_order():
    assert build_index_patterns("logs-*,metrics-*", "", "-logs-debug*") == (
        "logs-*,metrics-*,-logs-debug*"
    )


def test_exclusions_must_start_with_dash():
    with pytest.raises(InvalidInputError):
        build_index_patterns("*", "", ".security*")


def test_latest_snapshot_for_policy():
    snapshots = [
        {"snapshot": "a", "start_time_in_millis": 3, "metadata": {"policy": "p"}},
        {"snapshot": "b", "start_time_in_millis": 5, "metadata": {"policy": "p"}},
        {"snapshot": "c", "start_time_in_millis": 9, "metadata": {"policy": "q"}},
        {"snapshot": "d", "start_time_in_millis": 10},
    ]
    assert latest_snapshot_for_policy(snapshots, "p")["snapshot"] == "b"
    assert latest_snapshot_for_policy(snapshots, "missing") is None


def test_recovery_stages():
    recovery = {
        "a": {"shards": [{"id": 0, "stage": "DONE"}, {"id": 1, "stage": "INDEX"}]},
        "b": {"shards": [{"id": 0, "stage": "DONE"}]},
    }
    assert distinct_recovery_stages(recovery) == {"DONE", "INDEX"}
    assert distinct_recovery_stages({}) == set()


def test_detached_backing_indices():
    matching = [
        ".ds-logs-2025.01.01-000001",
        ".ds-logs-2025.01.02-000002",
        ".ds-logs-extra-2025.01.01-000001",
        ".ds-logs-000003",
    ]
    attached = [".ds-logs-2025.01.02-000002"]
    assert detached_backing_indices(matching, attached, "logs") == [
        ".ds-logs-000003",
        ".ds-logs-2025.01.01-000001",
    ]
    # without the stream name only the set difference is taken
    assert len(detached_backing_indices(matching, attached)) == 3


def test_template_settings_override_components():
    index_template = {
        "composed_of": ["first", "second"],
        "template": {"settings": {"default_pipeline": "from-template"}},
    }
    components = {
        "first": {"template": {"settings": {"index.lifecycle.name": "first-policy"}}},
        "second": {
            "template": {
                "settings": {
                    "index": {
                        "lifecycle": {"name": "second-policy"},
                        "default_pipeline": "from-component",
                    }
                }
            }
        },
    }
    assert resolve_template_settings(index_template, components) == {
        "index.lifecycle.name": "second-policy",
        "index.default_pipeline": "from-template",
    }


def test_dotted_setting_to_body():
    assert dotted_setting_to_body('"index.number_of_replicas":0') == {
        "index": {"number_of_replicas": "0"}
    }
    tier = "index.routing.allocation.include._tier_preference: data_warm"
    assert dotted_setting_to_body(tier) == {
        "index": {
            "routing": {"allocation": {"include": {"_tier_preference": "data_warm"}}}
        }
    }
    with pytest.raises(InvalidInputError):
        dotted_setting_to_body("index.number_of_replicas")


def test_templates_matching_index():
    templates = [
        {"name": "logs", "index_template": {"index_patterns": ["logs-*"]}},
        {"name": "metrics", "index_template": {"index_patterns": ["metrics-*", "m-*"]}},
    ]
    assert templates_matching_index(templates, "logs-app") == ["logs"]
    assert templates_matching_index(templates, "m-1") == ["metrics"]
    assert templates_matching_index(templates, "other") == []


def test_name_collisions_apply_rename():
    assert name_collisions(["a", "b"], ["b", "restored-a"]) == ["b"]
    assert name_collisions(["a", "b"], ["b", "restored-a"], "(.+)", "restored-$1") == [
        "restored-a"
    ]


def test_names_selected_by_expression():
    names = ["logs-1", "logs-old-1", "metrics-1"]
    assert names_selected_by(names, "logs-*,-logs-old-*") == ["logs-1"]
    assert names_selected_by(names, "*,-logs-*") == ["metrics-1"]
    assert names_selected_by(names, "metrics-1, logs-1") == ["logs-1", "metrics-1"]
    assert names_selected_by(names, "-metrics-*") == ["logs-1", "logs-old-1"]
    assert names_selected_by(names, "") == names


def test_read_names_from_file(tmp_path):
    names = tmp_path / "indices.txt"
    names.write_text("one\n\n two \n")
    assert read_names_from_file(str(names)) == ["one", "two"]
    with pytest.raises(InvalidInputError):
        read_names_from_file(str(tmp_path / "missing.txt"))
    with pytest.raises(MissingInputError):
        read_names_from_file("")


def test_ilm_policy_rows():
    policies = {
        "b": {
            "policy": {"_meta": {"managed": True}},
            "in_use_by": {"indices": ["x", "y"]},
        },
        "a": {"policy": {}, "in_use_by": {"data_streams": ["ds"]}},
    }
    assert ilm_policy_rows(policies) == [
        ("a", "N/A", "0", "1", "0"),
        ("b", "true", "2", "0", "0"),
    ]


def test_export_and_load(tmp_path):
    body = {"policy": {"phases": {}}}
    path = write_export(str(tmp_path / "out"), "policy.json", body)
    assert load_json_file(str(path)) == {"policy": {"phases": {}}}
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    with pytest.raises(InvalidInputError):
        load_json_file(str(bad))
