import inspect
import logging
import types
import typing
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Optional, Union

logger = logging.getLogger(__name__)

NoneType = type(None)

Annotation = Any

# Builtins that never identify a schema type on their own
OPAQUE_CLASSES: frozenset[type] = frozenset(
    {object, type, str, bytes, int, float, bool, complex, dict, list, tuple, set, frozenset}
)

# Python counterparts of primitives that cannot hold null; an omitted or null nullable
# argument bound to one of these resolves to the zero value instead of None
PRIMITIVE_DEFAULTS: dict[type, Any] = {bool: False, int: 0, float: 0.0}


def get_origin(annotation: Annotation) -> Optional[Any]:
    return typing.get_origin(annotation)


def get_args(annotation: Annotation) -> tuple[Any, ...]:
    return typing.get_args(annotation)


def is_union(annotation: Annotation) -> bool:
    origin = get_origin(annotation)
    if origin is Union:
        return True
    union_type = getattr(types, 'UnionType', None)
    return union_type is not None and isinstance(annotation, union_type)


def is_optional(annotation: Annotation) -> bool:
    return is_union(annotation) and NoneType in get_args(annotation)


def strip_optional(annotation: Annotation) -> Annotation:
    if not is_optional(annotation):
        return annotation

    remaining = [arg for arg in get_args(annotation) if arg is not NoneType]
    if len(remaining) == 1:
        return remaining[0]

    return Union[tuple(remaining)]


def is_any(annotation: Annotation) -> bool:
    return annotation is Any or annotation is inspect.Parameter.empty or annotation is None


def raw_class(annotation: Annotation) -> Optional[type]:
    # parameterized builtins such as list[int] pass isinstance(..., type) before 3.11
    origin = get_origin(annotation)
    if isinstance(origin, type):
        return origin
    if origin is None and isinstance(annotation, type):
        return annotation

    return None


def is_plain_class(annotation: Annotation) -> bool:
    return isinstance(annotation, type) and get_origin(annotation) is None


def is_user_class(annotation: Annotation) -> bool:
    return (
        is_plain_class(annotation)
        and annotation not in OPAQUE_CLASSES
        and annotation.__module__ not in ('builtins', 'typing', 'collections.abc')
    )


def is_mapping_class(annotation: Annotation) -> bool:
    cls = raw_class(annotation)
    return cls is not None and issubclass(cls, Mapping)


def is_collection_class(annotation: Annotation) -> bool:
    cls = raw_class(annotation)
    return (
        cls is not None
        and issubclass(cls, Iterable)
        and not issubclass(cls, (str, bytes, Mapping))
    )


def element_type(annotation: Annotation) -> Annotation:
    args = get_args(annotation)
    return args[0] if args else Any


def primitive_default(annotation: Annotation) -> Any:
    # bool is checked before int since it is an int subclass
    for primitive in (bool, int, float):
        if annotation is primitive:
            return PRIMITIVE_DEFAULTS[primitive]

    return None


def resolve_type_hints(obj: Callable[..., Any]) -> dict[str, Annotation]:
    try:
        return typing.get_type_hints(obj)
    except Exception as error:  # pylint: disable=broad-except
        logger.warning(
            'Unable to evaluate annotations of %s (%s), treating it as unannotated',
            getattr(obj, '__qualname__', obj),
            error,
        )
        return {}


def describe(annotation: Annotation) -> str:
    if is_any(annotation):
        return 'Any'
    if is_plain_class(annotation):
        return annotation.__qualname__

    return repr(annotation).replace('typing.', '')
