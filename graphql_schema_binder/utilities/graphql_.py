import re

from graphql import (
    GraphQLBoolean,
    GraphQLField,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLType,
    get_named_type,
    is_introspection_type,
    is_non_null_type,
    is_object_type,
)

from graphql_schema_binder.shims import NamedField

_CAMEL_BOUNDARY = re.compile(r'(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])')


def to_snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub('_', name).lower()


def capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def is_boolean_field(field: GraphQLField) -> bool:
    return get_named_type(field.type) is GraphQLBoolean


def is_nullable(type_: GraphQLType) -> bool:
    return not is_non_null_type(type_)


def unwrap_non_null(type_: GraphQLType) -> GraphQLType:
    return type_.of_type if is_non_null_type(type_) else type_


def object_types(schema: GraphQLSchema) -> list[GraphQLObjectType]:
    return [
        type_
        for type_ in schema.type_map.values()
        if is_object_type(type_) and not is_introspection_type(type_)
    ]


def root_type_names(schema: GraphQLSchema) -> dict[str, str]:
    roots = {}
    for operation, type_ in (
        ('query', schema.query_type),
        ('mutation', schema.mutation_type),
        ('subscription', schema.subscription_type),
    ):
        if type_ is not None:
            roots[type_.name] = operation

    return roots


def fields_of(type_: GraphQLObjectType) -> list[NamedField]:
    return [NamedField(field, name) for name, field in type_.fields.items()]
