"""Utility functions for esadmin"""

import json
import logging
import re
from datetime import datetime, timezone
from fnmatch import fnmatchcase
from pathlib import Path

from esadmin_core.constants import BACKING_INDEX_PREFIX, DEFAULT_INCLUDED_INDICES
from esadmin_core.exceptions import InvalidInputError, MissingInputError

loggit = logging.getLogger("esadmin.utilities")


def split_csv(value: str) -> list[str]:
    """
    Split a comma-separated answer into its non-empty, stripped items.
    """
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_bool(value, default: bool = None) -> bool:
    """
    Interpret a true/false answer. An empty answer yields ``default``.

    :raises InvalidInputError: if the answer is neither true nor false, or is
        empty and there is no default
    """
    if isinstance(value, bool):
        return value
    text = (value or "").strip().lower()
    if not text:
        if default is None:
            raise InvalidInputError("A true/false value is required")
        return default
    if text in ("true", "t", "yes", "1"):
        return True
    if text in ("false", "f", "no", "0"):
        return False
    raise InvalidInputError(f"Expected true or false, got {value!r}")


def unique(items) -> list:
    """
    Drop repeated items, keeping the first occurrence of each.
    """
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def build_index_patterns(
    included: str = "", default_excluded: str = "", user_excluded: str = ""
) -> str:
    """
    Build the ``indices`` value of a restore request.

    Included patterns come first (``*`` when nothing was given), followed by the
    default exclusions and then the user's exclusions. Exclusions start with
    ``-``.

    :example:
        >>> build_index_patterns("", "-.security*", "-.kibana*")
        '*,-.security*,-.kibana*'
    """
    patterns = split_csv(included) or [DEFAULT_INCLUDED_INDICES]
    excluded = split_csv(default_excluded) + split_csv(user_excluded)
    for pattern in excluded:
        if not pattern.startswith("-"):
            raise InvalidInputError(
                f"Excluded index pattern {pattern!r} must start with '-'"
            )
    return ",".join(unique(patterns + excluded))


def latest_snapshot_for_policy(snapshots: list[dict], policy: str):
    """
    Pick the most recently started snapshot taken by an SLM policy.

    :param snapshots: the ``snapshots`` list of ``GET _snapshot/<repo>/_all``
    :param policy: SLM policy name, matched against ``metadata.policy``
    :returns: the snapshot dict with the largest ``start_time_in_millis``, or
        None when the policy took no snapshot in this repository
    """
    candidates = [
        snap
        for snap in snapshots
        if (snap.get("metadata") or {}).get("policy") == policy
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda snap: snap.get("start_time_in_millis", 0))


def recovery_rows(recovery: dict) -> list[tuple]:
    """
    Flatten a ``GET _recovery`` body into one row per shard:
    (index, shard id, stage, bytes percent, files percent).
    """
    rows = []
    for index in sorted(recovery):
        for shard in recovery[index].get("shards", []):
            index_info = shard.get("index", {})
            rows.append(
                (
                    index,
                    str(shard.get("id", "")),
                    shard.get("stage", ""),
                    index_info.get("size", {}).get("percent", ""),
                    index_info.get("files", {}).get("percent", ""),
                )
            )
    return rows


def distinct_recovery_stages(recovery: dict) -> set[str]:
    """
    The set of shard recovery stages present across all indices.

    An empty set means no shard recovery was reported at all, which is not
    the same thing as every shard being DONE.
    """
    return {row[2] for row in recovery_rows(recovery) if row[2]}


def backing_index_pattern(data_stream: str) -> str:
    return f"{BACKING_INDEX_PREFIX}{data_stream}-*"


def is_backing_index_of(index: str, data_stream: str) -> bool:
    """
    True when ``index`` is named like a backing index of ``data_stream``:
    ``.ds-<stream>-<yyyy.MM.dd>-<generation>`` (or ``.ds-<stream>-<generation>``
    on clusters older than 7.11). A plain ``.ds-<stream>-*`` match would also
    catch the backing indices of ``<stream>-something``.
    """
    pattern = (
        rf"^{re.escape(BACKING_INDEX_PREFIX + data_stream)}-"
        r"(\d{4}\.\d{2}\.\d{2}-)?\d+$"
    )
    return re.match(pattern, index) is not None


def detached_backing_indices(matching, attached, data_stream: str = None) -> list[str]:
    """
    Backing indices that follow the data stream's naming convention but are not
    attached to it.

    :param matching: index names matching ``.ds-<stream>-*``
    :param attached: index names the data stream API lists for the stream
    :param data_stream: when given, names not shaped like this stream's backing
        indices are dropped from ``matching`` first
    :returns: the sorted set difference
    """
    if data_stream:
        matching = [name for name in matching if is_backing_index_of(name, data_stream)]
    return sorted(set(matching) - set(attached))


def flatten_settings(settings: dict, prefix: str = "") -> dict:
    """
    Turn nested index settings into dotted keys.

    :example:
        >>> flatten_settings({"index": {"lifecycle": {"name": "p"}}})
        {'index.lifecycle.name': 'p'}
    """
    flat = {}
    for key, value in (settings or {}).items():
        dotted = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            flat.update(flatten_settings(value, dotted))
        else:
            flat[dotted] = value
    return flat


def normalize_index_settings(settings: dict) -> dict:
    """
    Flatten settings and make sure every key carries the ``index.`` prefix,
    which templates are allowed to omit.
    """
    normalized = {}
    for key, value in flatten_settings(settings).items():
        if not key.startswith("index."):
            key = f"index.{key}"
        normalized[key] = value
    return normalized


def resolve_template_settings(
    index_template: dict, component_templates: dict = None
) -> dict:
    """
    Resolve the index settings an index template hands to new indices.

    Component templates apply in ``composed_of`` order and the index template's
    own ``template.settings`` override them.

    :param index_template: the ``index_template`` object of ``GET _index_template``
    :param component_templates: component template name -> ``component_template``
        object of ``GET _component_template``
    :returns: flat, ``index.``-prefixed settings
    """
    component_templates = component_templates or {}
    resolved = {}
    for name in index_template.get("composed_of", []):
        component = component_templates.get(name)
        if component is None:
            loggit.warning("Component template %s was not found", name)
            continue
        resolved.update(
            normalize_index_settings(
                component.get("template", {}).get("settings", {})
            )
        )
    resolved.update(
        normalize_index_settings(index_template.get("template", {}).get("settings", {}))
    )
    return resolved


def dotted_setting_to_body(setting: str) -> dict:
    """
    Expand a ``dotted.key:value`` answer into a nested settings body.

    Quotes around the key or the value are dropped.

    :example:
        >>> dotted_setting_to_body('"index.number_of_replicas":0')
        {'index': {'number_of_replicas': '0'}}
    """
    if ":" not in (setting or ""):
        raise InvalidInputError(
            f"Expected a setting like index.number_of_replicas:0, got {setting!r}"
        )
    key, value = setting.split(":", 1)
    key = key.strip().strip("\"'")
    value = value.strip().strip("\"'")
    if not key:
        raise InvalidInputError(f"Setting {setting!r} has no key")
    body = value
    for part in reversed(key.split(".")):
        body = {part: body}
    return body


def templates_matching_index(index_templates: list[dict], index: str) -> list[str]:
    """
    Names of the index templates whose patterns match an index name.
    """
    names = []
    for template in index_templates:
        patterns = template.get("index_template", {}).get("index_patterns", [])
        if isinstance(patterns, str):
            patterns = [patterns]
        if any(fnmatchcase(index, pattern) for pattern in patterns):
            names.append(template["name"])
    return names


def components_of(index_templates: list[dict], name: str) -> list[str]:
    for template in index_templates:
        if template.get("name") == name:
            return list(template.get("index_template", {}).get("composed_of", []))
    return []


def java_replacement_to_python(replacement: str) -> str:
    """
    Elasticsearch rename replacements use ``$1``; Python uses ``\\1``.
    """
    return re.sub(r"\$(\d+)", r"\\\1", replacement)


def renamed(name: str, pattern: str = None, replacement: str = None) -> str:
    """
    The name an index gets once restored with a rename pattern.
    """
    if not pattern or replacement is None:
        return name
    try:
        return re.sub(pattern, java_replacement_to_python(replacement), name)
    except re.error as e:
        raise InvalidInputError(f"Invalid rename pattern {pattern!r}: {e}") from e


def names_selected_by(names, expression: str) -> list[str]:
    """
    The names a comma-separated multi-target expression such as
    ``logs-*,-logs-old-*`` selects. Entries starting with ``-`` exclude what
    they match; without any including entry every name is a candidate.
    """
    entries = split_csv(expression)
    includes = [entry for entry in entries if not entry.startswith("-")] or ["*"]
    excludes = [entry[1:] for entry in entries if entry.startswith("-")]
    return [
        name
        for name in names
        if any(fnmatchcase(name, pattern) for pattern in includes)
        and not any(fnmatchcase(name, pattern) for pattern in excludes)
    ]


def name_collisions(
    snapshot_names, existing_names, pattern: str = None, replacement: str = None
) -> list[str]:
    """
    Names the restore would create that already exist in the target cluster.
    """
    existing = set(existing_names)
    return sorted(
        {renamed(name, pattern, replacement) for name in snapshot_names} & existing
    )


def read_names_from_file(path: str) -> list[str]:
    """
    Read one name per line, skipping blank lines.

    :raises MissingInputError: if no path was given
    :raises InvalidInputError: if the file does not exist
    """
    if not path:
        raise MissingInputError("File path is required")
    file_path = Path(path)
    if not file_path.is_file():
        raise InvalidInputError(f"File not found: {path}")
    with open(file_path) as f:
        return [line.strip() for line in f if line.strip()]


def millis_to_string(millis) -> str:
    """
    Human readable UTC timestamp for an epoch-millis value (as int or string).
    """
    try:
        seconds = int(millis) / 1000
    except (TypeError, ValueError):
        return "unknown"
    return datetime.fromtimestamp(seconds, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S %Z"
    )


def ilm_policy_rows(policies: dict) -> list[tuple]:
    """
    Summary rows for ``GET _ilm/policy``: name, managed flag and usage counts.
    """
    rows = []
    for name in sorted(policies):
        policy = policies[name]
        managed = policy.get("policy", {}).get("_meta", {}).get("managed")
        in_use = policy.get("in_use_by", {})
        rows.append(
            (
                name,
                "N/A" if managed is None else str(managed).lower(),
                str(len(in_use.get("indices", []))),
                str(len(in_use.get("data_streams", []))),
                str(len(in_use.get("composable_templates", []))),
            )
        )
    return rows


def is_managed_policy(policy: dict) -> bool:
    return policy.get("policy", {}).get("_meta", {}).get("managed") is True


def write_export(output_dir: str, filename: str, content) -> Path:
    """
    Write an export into ``output_dir``. Dicts and lists are written as
    indented JSON, strings as they are.

    :returns: the path written
    """
    path = Path(output_dir or ".") / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        if isinstance(content, str):
            f.write(content)
        else:
            json.dump(content, f, indent=2)
            f.write("\n")
    loggit.info("Wrote %s", path)
    return path


def load_json_file(path: str) -> dict:
    """
    :raises InvalidInputError: if the file is missing or not valid JSON
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise InvalidInputError(f"File not found: {path}")
    try:
        with open(file_path) as f:
            return json.load(f)
    except ValueError as e:
        raise InvalidInputError(f"{path} is not valid JSON: {e}") from e
