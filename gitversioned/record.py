"""
Versioned records.

Mixin that gives a dataclass the capabilities gitversioned needs:
a type name, a stable identity, and a readable/writable attribute map.

Usage:
    @dataclass
    class User(Versioned):
        id: int
        name: str
        session: str | None = field(default=None, metadata={"transient": True})

    User(1, "ada").version_attributes()   # {"id": 1, "name": "ada"}

Transient fields are never written to the blob and survive a reload
untouched. Nested dataclasses are flattened to plain dicts on the way
out and rebuilt from their type hints on the way back in.

Records that are not dataclasses override version_attributes() and
load_version_attributes().
"""

import dataclasses
from typing import Union, get_args, get_origin, get_type_hints


def _is_transient(f: dataclasses.Field) -> bool:
    return bool(f.metadata.get("transient", False))


class Versioned:
    """Mixin that lets a dataclass be stored as a blob."""

    # Override to store under a different directory than the class name
    __version_type__: str | None = None
    # Attribute holding the caller-supplied stable identity
    __identity_field__: str = "id"

    @classmethod
    def version_type(cls) -> str:
        return cls.__version_type__ or cls.__name__

    def version_identity(self):
        return getattr(self, self.__identity_field__, None)

    def version_attributes(self) -> dict:
        if not dataclasses.is_dataclass(self):
            raise NotImplementedError(
                f"{type(self).__name__} is not a dataclass; override version_attributes()"
            )
        return {
            f.name: _flatten(getattr(self, f.name))
            for f in dataclasses.fields(self)
            if not _is_transient(f)
        }

    def load_version_attributes(self, attributes: dict) -> None:
        """Overwrite this instance's persisted fields in place."""
        if not dataclasses.is_dataclass(self):
            raise NotImplementedError(
                f"{type(self).__name__} is not a dataclass; override load_version_attributes()"
            )
        hints = get_type_hints(type(self))
        for f in dataclasses.fields(self):
            if _is_transient(f) or f.name not in attributes:
                # Unknown or missing keys are skipped (lenient)
                continue
            setattr(self, f.name, _rebuild(attributes[f.name], hints.get(f.name)))


def _flatten(value):
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        if isinstance(value, Versioned):
            return value.version_attributes()
        return {f.name: _flatten(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, list):
        return [_flatten(v) for v in value]
    if isinstance(value, dict):
        return {k: _flatten(v) for k, v in value.items()}
    return value


def _rebuild(value, field_type):
    """Turn plain dicts back into nested dataclasses according to the type hint."""
    if value is None:
        return None

    actual_type = _unwrap_optional(field_type)

    if isinstance(value, dict) and dataclasses.is_dataclass(actual_type):
        hints = get_type_hints(actual_type)
        kwargs = {
            f.name: _rebuild(value[f.name], hints.get(f.name))
            for f in dataclasses.fields(actual_type)
            if f.name in value
        }
        return actual_type(**kwargs)

    if isinstance(value, list):
        inner = _get_list_inner_type(actual_type)
        if inner is not None and dataclasses.is_dataclass(inner):
            return [_rebuild(v, inner) for v in value]
        return value

    return value


def _unwrap_optional(tp):
    """Unwrap X | None to X."""
    if get_origin(tp) in (Union, type(int | str)):
        non_none = [a for a in get_args(tp) if a is not type(None)]
        if len(non_none) == 1:
            return non_none[0]
    return tp


def _get_list_inner_type(tp):
    """Extract T from list[T]."""
    if get_origin(tp) is list:
        args = get_args(tp)
        if args:
            return args[0]
    return None
