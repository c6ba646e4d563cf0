import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from graphql import (
    GraphQLInputType,
    GraphQLResolveInfo,
    get_named_type,
    is_enum_type,
    is_input_object_type,
    is_list_type,
    is_scalar_type,
    is_specified_scalar_type,
)

from graphql_schema_binder.errors import ResolverError
from graphql_schema_binder.utilities.graphql_ import to_snake_case, unwrap_non_null
from graphql_schema_binder.utilities.typing_ import (
    Annotation,
    describe,
    element_type,
    get_args,
    is_any,
    is_collection_class,
    is_mapping_class,
    is_optional,
    is_union,
    is_user_class,
    primitive_default,
    raw_class,
    resolve_type_hints,
    strip_optional,
)

EXACT = 0
COUNTERPART = 1
UNTYPED = 2

SCALAR_CLASSES: dict[str, tuple[type, ...]] = {
    'Int': (int,),
    'Float': (float,),
    'String': (str,),
    'Boolean': (bool,),
    'ID': (str,),
}

# widening conversions that lose nothing
SCALAR_COUNTERPARTS: dict[str, tuple[type, ...]] = {
    'Int': (float,),
    'ID': (int,),
}


class ArgumentSource(Enum):
    SCHEMA = 'schema'
    SOURCE = 'source'
    INFO = 'info'
    CONTEXT = 'context'


@dataclass(frozen=True)
class ArgumentBinding:
    name: str
    position: int
    source: ArgumentSource
    annotation: Annotation = Any
    graphql_type: Optional[GraphQLInputType] = None
    nullable: bool = True
    keyword: bool = False
    parameter: Optional[str] = None

    @property
    def absent_value(self) -> Any:
        # only reachable for nullable arguments; graphql-core enforces required ones
        return primitive_default(self.annotation)

    @property
    def is_environment(self) -> bool:
        return self.source in (ArgumentSource.INFO, ArgumentSource.CONTEXT)

    def resolve(self, source: Any, info: GraphQLResolveInfo, arguments: Mapping[str, Any]) -> Any:
        if self.source is ArgumentSource.INFO:
            return info
        if self.source is ArgumentSource.CONTEXT:
            return info.context
        if self.source is ArgumentSource.SOURCE:
            expected = strip_optional(self.annotation)
            if is_user_class(expected) and not isinstance(source, expected):
                raise ResolverError(
                    f'Source type ({type(source).__qualname__}) is not expected type'
                    f' ({expected.__qualname__})!'
                )
            return source

        value = arguments.get(self.name)
        if value is None:
            return self.absent_value

        return coerce_input(value, self.graphql_type, self.annotation)

    def describe(self) -> str:
        if self.source is ArgumentSource.SCHEMA:
            return f'{self.name}: {describe(self.annotation)}'
        return f'<{self.source.value}>'


def environment_source(
    parameter: inspect.Parameter, annotation: Annotation, context_class: Optional[type]
) -> Optional[ArgumentSource]:
    if annotation is GraphQLResolveInfo or (is_any(annotation) and parameter.name == 'info'):
        return ArgumentSource.INFO

    if context_class is not None and isinstance(annotation, type):
        if issubclass(context_class, annotation) and annotation is not object:
            return ArgumentSource.CONTEXT
    if is_any(annotation) and parameter.name == 'context':
        return ArgumentSource.CONTEXT

    return None


def match_score(type_: GraphQLInputType, annotation: Annotation) -> Optional[int]:
    """How closely a parameter annotation fits a schema input type.

    Returns None when the annotation cannot receive values of the type, otherwise a
    score where lower is more specific.
    """
    if is_any(annotation):
        return UNTYPED

    optional = is_optional(annotation)
    inner = strip_optional(annotation)
    if is_any(inner):
        return UNTYPED

    if is_union(inner):
        scores = [
            score
            for member in get_args(inner)
            if (score := _match_nullable(unwrap_non_null(type_), member)) is not None
        ]
        if not scores:
            return None
        return min(min(scores) + COUNTERPART, UNTYPED)

    score = _match_nullable(unwrap_non_null(type_), inner)
    if score is None:
        return None

    return min(score + (COUNTERPART if optional else EXACT), UNTYPED)


def _match_nullable(type_: GraphQLInputType, annotation: Annotation) -> Optional[int]:
    if is_any(annotation):
        return UNTYPED

    if is_list_type(type_):
        if not is_collection_class(annotation):
            return None
        return match_score(type_.of_type, element_type(annotation))

    named = get_named_type(type_)
    cls = raw_class(annotation)
    if cls is None:
        return None

    if is_enum_type(named):
        if issubclass(cls, Enum):
            return EXACT
        return COUNTERPART if cls is str else None

    if is_input_object_type(named):
        if is_mapping_class(cls) or is_user_class(cls):
            return EXACT
        return None

    if is_scalar_type(named):
        if not is_specified_scalar_type(named):
            return COUNTERPART
        if cls in SCALAR_CLASSES[named.name]:
            return EXACT
        if cls in SCALAR_COUNTERPARTS.get(named.name, ()):
            return COUNTERPART
        return None

    return None


def coerce_input(value: Any, type_: Optional[GraphQLInputType], annotation: Annotation) -> Any:
    if value is None or type_ is None:
        return value

    target = strip_optional(annotation)
    if is_any(target):
        return value

    type_ = unwrap_non_null(type_)

    if is_list_type(type_):
        items = [coerce_input(item, type_.of_type, element_type(target)) for item in value]
        collection = raw_class(target)
        if collection in (tuple, set, frozenset):
            return collection(items)
        return items

    if is_enum_type(type_):
        if isinstance(target, type) and issubclass(target, Enum) and not isinstance(value, target):
            return target[value] if isinstance(value, str) else target(value)
        return value

    if is_input_object_type(type_):
        if not is_user_class(target) or is_mapping_class(target):
            return value
        hints = resolve_type_hints(target)
        keywords = {}
        for name, field_value in value.items():
            # input field names are camelCase, class attributes usually snake_case
            key = name if name in hints else to_snake_case(name)
            input_field = type_.fields.get(name)
            keywords[key] = coerce_input(
                field_value, input_field.type if input_field else None, hints.get(key, Any)
            )
        return target(**keywords)

    if is_scalar_type(type_):
        if type_.name == 'ID' and target is int:
            return int(value)
        if target is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)

    return value
