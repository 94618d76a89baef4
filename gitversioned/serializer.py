"""
Snapshot serializer

A record's attribute map is stored as a small YAML document:

    attributes:
      email: ada@example.com
      name: Ada
      tags:
      - admin

Block style with sorted keys, so equal maps always produce identical
bytes and successive commits diff line by line.

Only values that YAML reads back as the same Python value are accepted.
Anything else (tuples, sets, bytes, arbitrary objects) is rejected at
write time rather than silently coming back as something different.
"""

import datetime

import yaml

from .errors import SerializationError

ROOT_KEY = "attributes"

# Exact types only: safe_dump cannot represent subclasses (IntEnum, OrderedDict)
_SCALARS = (str, int, float, bool, datetime.date, datetime.datetime, type(None))

# YAML reads these as line breaks inside plain or single-quoted scalars
_LINE_BREAKS = ("\x85",)


class _BlobDumper(yaml.SafeDumper):
    pass


def _represent_str(dumper, value):
    if any(ch in value for ch in _LINE_BREAKS):
        # Double-quoted style escapes the character as \N
        return dumper.represent_scalar("tag:yaml.org,2002:str", value, style='"')
    return dumper.represent_str(value)


_BlobDumper.add_representer(str, _represent_str)


def _check(value, where: str):
    """Reject values that would not deserialize to an equal value."""
    if type(value) is dict:
        for key, item in value.items():
            if type(key) is not str:
                raise SerializationError(
                    f"Unsupported key {key!r} at {where}: attribute keys must be strings"
                )
            _check(item, f"{where}.{key}")
    elif type(value) is list:
        for i, item in enumerate(value):
            _check(item, f"{where}[{i}]")
    elif type(value) not in _SCALARS:
        raise SerializationError(
            f"Unsupported value of type {type(value).__name__} at {where}"
        )


def serialize(attributes: dict) -> bytes:
    """Attribute map -> YAML bytes."""
    if not isinstance(attributes, dict):
        raise SerializationError(
            f"Attributes must be a mapping, got {type(attributes).__name__}"
        )
    _check(attributes, ROOT_KEY)
    try:
        text = yaml.dump(
            {ROOT_KEY: attributes},
            Dumper=_BlobDumper,
            default_flow_style=False,
            sort_keys=True,
            allow_unicode=True,
        )
    except yaml.YAMLError as e:
        raise SerializationError(f"Attributes cannot be written as YAML: {e}") from e
    return text.encode("utf-8")


def deserialize(data: bytes) -> dict:
    """YAML bytes -> attribute map."""
    try:
        document = yaml.safe_load(data.decode("utf-8") if isinstance(data, bytes) else data)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise SerializationError(f"Blob is not valid YAML: {e}") from e

    if not isinstance(document, dict) or ROOT_KEY not in document:
        raise SerializationError(f"Blob has no top-level '{ROOT_KEY}' mapping")
    attributes = document[ROOT_KEY]
    if attributes is None:
        return {}
    if not isinstance(attributes, dict):
        raise SerializationError(
            f"'{ROOT_KEY}' must be a mapping, got {type(attributes).__name__}"
        )
    return attributes
