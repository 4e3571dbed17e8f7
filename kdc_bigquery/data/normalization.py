"""
Module: normalization

Purpose: Turn raw probe measures into rows BigQuery will accept.

Key Functions:
- normalize_field_name: Rewrite a key into a legal BigQuery column name
- flatten_object: Collapse a nested mapping into a single level
- normalize_measure_data: Normalize every key of a flat mapping
- extract_measure_data: Produce the row(s) carried by a measure payload

Architecture Notes:
- Pure functions, no I/O
- Flattening is lossy: child keys are not prefixed with their parent key, so
  colliding leaf names overwrite each other (last visited wins)
- flatten_object performs no cycle detection; callers must not pass
  self-referencing structures
"""

import re
from collections.abc import Mapping
from typing import Any


ILLEGAL_FIELD_CHARS = re.compile(r"[^A-Za-z0-9_]")
LEGAL_FIELD_NAME = re.compile(r"^[A-Za-z0-9_]+$")

CONTENT_KEY = "content"


def normalize_field_name(name: str) -> str:
    """
    Replace every character BigQuery refuses in a column name with "_".

    Example:
        >>> normalize_field_name("a:weird-string.to%be/converted")
        'a_weird_string_to_be_converted'
    """
    return ILLEGAL_FIELD_CHARS.sub("_", name)


def is_legal_field_name(name: str) -> bool:
    """Check whether a name can be used as-is as a BigQuery column name."""
    return bool(LEGAL_FIELD_NAME.match(name))


def flatten_object(obj: Mapping[str, Any]) -> dict[str, Any]:
    """
    Flatten nested mappings into a single-level dict.

    Nested mappings are merged into the result without any key prefix.
    Scalars, sequences and None are copied as-is.

    Example:
        >>> flatten_object({"parent": {"child1": "v1", "child2": "v2"}})
        {'child1': 'v1', 'child2': 'v2'}
    """
    flat: dict[str, Any] = {}

    for key, value in obj.items():
        if isinstance(value, Mapping):
            flat.update(flatten_object(value))
        else:
            flat[key] = value

    return flat


def normalize_measure_data(data: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize all the attribute names of a measure's data."""
    return {normalize_field_name(key): value for key, value in data.items()}


def extract_measure_data(data: Mapping[str, Any]) -> list[dict[str, Any]]:
    """
    Extract the rows carried by a measure payload.

    Some probes (samplers, watchers) wrap their documents in a ``content``
    list; every element becomes its own row, flattened then normalized.
    Any other payload is a single row whose keys are normalized but whose
    values are left untouched.

    Args:
        data: The ``data`` attribute of a measure

    Returns:
        List of rows ready to be inserted

    Raises:
        TypeError/AttributeError: If data (or a content element) is not a mapping
    """
    if CONTENT_KEY not in data:
        return [normalize_measure_data(data)]

    content = data[CONTENT_KEY]
    if isinstance(content, Mapping):
        content = [content]

    return [normalize_measure_data(flatten_object(item)) for item in content]
