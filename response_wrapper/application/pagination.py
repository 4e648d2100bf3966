"""
Duck-typed pagination detection.

Any result object exposing the seven pagination members, under any
accepted alias and with the right value kinds, is treated as a page:
its items become the envelope data and the rest becomes the
pagination metadata block. Neither a base class nor a protocol is
required.

The member lookup for a concrete type is done once and cached in a
process-wide TypeShapeCache. The cached shape depends only on the
type: member names plus declared types where annotations exist.
Values are checked on every instance, so one page with a missing
items list does not disqualify its type. Mappings have no per-type
shape and are resolved per instance by key.
"""

import inspect
import logging
import threading
import types
import typing
from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from response_wrapper.domain.models import (
    NOT_PAGINATED,
    PaginationMetadata,
    TypeShapeDescriptor,
)

logger = logging.getLogger(__name__)


def _is_items(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


SEQUENCE_ANNOTATIONS = (Sequence, Collection, Iterable)


def _declares_items(base: type) -> bool:
    return base in SEQUENCE_ANNOTATIONS or issubclass(base, (list, tuple))


def _declares_int(base: type) -> bool:
    return issubclass(base, int) and not issubclass(base, bool)


def _declares_bool(base: type) -> bool:
    return issubclass(base, bool)


# (descriptor field, accepted aliases in preference order, value check,
# declared-type check). Aliases are compared case-insensitively with
# underscores removed.
PAGINATION_FIELDS: tuple[
    tuple[str, tuple[str, ...], Callable[[Any], bool], Callable[[type], bool]], ...
] = (
    ("items", ("items", "data", "results"), _is_items, _declares_items),
    ("page", ("page", "pagenumber", "currentpage"), _is_int, _declares_int),
    ("page_size", ("pagesize", "perpage", "limit"), _is_int, _declares_int),
    ("total_pages", ("totalpages", "pagecount"), _is_int, _declares_int),
    ("total_items", ("totalitems", "totalcount", "total"), _is_int, _declares_int),
    ("has_next_page", ("hasnextpage", "hasnext"), _is_bool, _declares_bool),
    (
        "has_previous_page",
        ("haspreviouspage", "hasprevious", "hasprev"),
        _is_bool,
        _declares_bool,
    ),
)

_MISSING = object()


def _normalize(name: str) -> str:
    return name.replace("_", "").lower()


def resolve_member_names(names: Iterable[str]) -> dict[str, str] | None:
    """Map each pagination field to the member name that provides it.

    Args:
        names: Candidate member names of a type or keys of a mapping.

    Returns:
        Field to member name for all seven fields, or None if any
        field has no matching member.
    """
    by_normalized: dict[str, str] = {}
    for name in names:
        if not isinstance(name, str) or name.startswith("_"):
            continue
        by_normalized.setdefault(_normalize(name), name)

    resolved: dict[str, str] = {}
    for field_name, aliases, _, _ in PAGINATION_FIELDS:
        member = next(
            (by_normalized[alias] for alias in aliases if alias in by_normalized),
            None,
        )
        if member is None:
            return None
        resolved[field_name] = member
    return resolved


def _type_member_names(result_type: type) -> list[str]:
    names: list[str] = []
    for klass in reversed(result_type.__mro__):
        if klass is object:
            continue
        names.extend(inspect.get_annotations(klass))
        names.extend(
            name for name, value in vars(klass).items() if isinstance(value, property)
        )
    model_fields = getattr(result_type, "model_fields", None)
    if isinstance(model_fields, dict):
        names.extend(model_fields)
    names.extend(getattr(result_type, "_fields", ()))
    return names


def _instance_member_names(result: Any) -> list[str]:
    names = list(getattr(result, "__dict__", {}))
    for klass in type(result).__mro__:
        slots = vars(klass).get("__slots__", ())
        names.extend([slots] if isinstance(slots, str) else slots)
    return names


def _declared_types(result_type: type) -> dict[str, Any]:
    """Declared types of fields and property getters, where resolvable."""
    try:
        declared = dict(typing.get_type_hints(result_type))
    except (NameError, TypeError, AttributeError):
        declared = {}
    for klass in result_type.__mro__:
        for name, value in vars(klass).items():
            if name in declared or not isinstance(value, property) or value.fget is None:
                continue
            try:
                hint = typing.get_type_hints(value.fget).get("return")
            except (NameError, TypeError, AttributeError):
                hint = None
            if hint is not None:
                declared[name] = hint
    return declared


def _declaration_matches(annotation: Any, declares: Callable[[type], bool]) -> bool:
    # Any, TypeVars and other opaque annotations defer to the value check.
    if annotation is Any:
        return True
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return any(
            _declaration_matches(arg, declares)
            for arg in typing.get_args(annotation)
            if arg is not type(None)
        )
    base = origin or annotation
    if not isinstance(base, type):
        return True
    return declares(base)


def _read_values(
    result: Any, members: Mapping[str, str], getter: Callable[[Any, str], Any]
) -> dict[str, Any] | None:
    values: dict[str, Any] = {}
    for field_name, _, is_kind, _ in PAGINATION_FIELDS:
        value = getter(result, members[field_name])
        if value is _MISSING or not is_kind(value):
            return None
        values[field_name] = value
    return values


def _get_attribute(result: Any, name: str) -> Any:
    return getattr(result, name, _MISSING)


def _get_key(result: Mapping[str, Any], name: str) -> Any:
    return result.get(name, _MISSING)


class TypeShapeCache:
    """Process-wide cache of pagination shapes keyed by concrete type.

    Reads are lock-free; the rare first population of a type happens
    under a reentrant lock with a second lookup, so a type never ends
    up with two descriptors and a factory may resolve other types.
    Entries are never invalidated.

    Attributes:
        introspections: Number of times a factory actually ran.
    """

    def __init__(self) -> None:
        self._shapes: dict[type, object] = {}
        self._lock = threading.RLock()
        self.introspections = 0

    def get(self, result_type: type) -> object | None:
        return self._shapes.get(result_type)

    def get_or_create(self, result_type: type, factory: Callable[[], object]) -> object:
        """Return the cached shape for the type, creating it on first use."""
        shape = self._shapes.get(result_type)
        if shape is not None:
            return shape
        with self._lock:
            shape = self._shapes.get(result_type)
            if shape is None:
                shape = factory()
                self.introspections += 1
                self._shapes[result_type] = shape
        return shape

    def clear(self) -> None:
        with self._lock:
            self._shapes.clear()
            self.introspections = 0

    def __contains__(self, result_type: object) -> bool:
        return result_type in self._shapes

    def __len__(self) -> int:
        return len(self._shapes)


type_shape_cache = TypeShapeCache()


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of pagination detection.

    Attributes:
        is_paginated: Whether the result was recognized as a page.
        items: The items list when paginated, else the original result.
        pagination: The hoisted pagination block when paginated.
    """

    is_paginated: bool
    items: Any
    pagination: PaginationMetadata | None = None


class PaginationDetector:
    """Splits paginated results into items and pagination metadata."""

    def __init__(self, cache: TypeShapeCache | None = None) -> None:
        self._cache = cache if cache is not None else type_shape_cache

    @property
    def cache(self) -> TypeShapeCache:
        return self._cache

    def detect(self, result: Any) -> DetectionResult:
        """Decide whether the result is paginated.

        Args:
            result: Any value returned by a handler.

        Returns:
            A DetectionResult; when not paginated, ``items`` is the
            original result, untouched.
        """
        if result is None or isinstance(result, (str, bytes, int, float)):
            return DetectionResult(is_paginated=False, items=result)

        if isinstance(result, Mapping):
            members = resolve_member_names(result.keys())
            values = _read_values(result, members, _get_key) if members else None
        else:
            shape = self._cache.get_or_create(
                type(result), lambda: self._introspect(result)
            )
            if shape is NOT_PAGINATED:
                return DetectionResult(is_paginated=False, items=result)
            values = _read_values(result, vars(shape), _get_attribute)

        if values is None:
            return DetectionResult(is_paginated=False, items=result)

        return DetectionResult(
            is_paginated=True,
            items=values["items"],
            pagination=PaginationMetadata(
                page=values["page"],
                page_size=values["page_size"],
                total_pages=values["total_pages"],
                total_items=values["total_items"],
                has_next_page=values["has_next_page"],
                has_previous_page=values["has_previous_page"],
            ),
        )

    @staticmethod
    def _introspect(result: Any) -> object:
        result_type = type(result)
        members = resolve_member_names(
            _type_member_names(result_type) + _instance_member_names(result)
        )
        if members is None:
            logger.debug("Type %s is not paginated", result_type.__qualname__)
            return NOT_PAGINATED

        declared = _declared_types(result_type)
        for field_name, _, _, declares in PAGINATION_FIELDS:
            annotation = declared.get(members[field_name])
            if annotation is not None and not _declaration_matches(annotation, declares):
                logger.debug(
                    "Type %s declares %s with a non-pagination type",
                    result_type.__qualname__,
                    members[field_name],
                )
                return NOT_PAGINATED

        logger.debug("Discovered pagination shape for %s", result_type.__qualname__)
        return TypeShapeDescriptor(result_type=result_type, **members)
