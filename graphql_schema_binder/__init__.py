from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from graphql import GraphQLScalarType, GraphQLSchema

from graphql_schema_binder.directives import (
    DirectiveEnvironment,
    DirectiveTransform,
    SchemaDirectiveWiring,
)
from graphql_schema_binder.errors import (
    AmbiguousFieldError,
    BindingErrors,
    DuplicateMappingError,
    InvalidWrapperUsageError,
    ResolverError,
    SchemaBindingError,
    SchemaError,
    TypeResolutionError,
    UnresolvedFieldError,
)
from graphql_schema_binder.field_binder import BindingKind, FieldBinding
from graphql_schema_binder.generic_wrappers import GenericWrapper, UnwrapPlan, WrapperKind
from graphql_schema_binder.options import BindingOptions
from graphql_schema_binder.proxy import ProxyHandler, SubclassProxyHandler
from graphql_schema_binder.relay import Connection, Edge, PageInfo, connection_from_list
from graphql_schema_binder.resolvers import (
    MutationResolver,
    QueryResolver,
    RootResolver,
    SubscriptionResolver,
    register_resolvers,
)
from graphql_schema_binder.type_dictionary import BiMap, TypeDictionary
from graphql_schema_binder.wiring import BinderWiring, WiringBuilder

__all__ = [
    'AmbiguousFieldError',
    'BiMap',
    'BinderWiring',
    'BindingErrors',
    'BindingKind',
    'BindingOptions',
    'Connection',
    'DirectiveEnvironment',
    'DuplicateMappingError',
    'Edge',
    'FieldBinding',
    'GenericWrapper',
    'InvalidWrapperUsageError',
    'MutationResolver',
    'PageInfo',
    'ProxyHandler',
    'QueryResolver',
    'ResolverError',
    'RootResolver',
    'SchemaBinder',
    'SchemaBindingError',
    'SchemaDirectiveWiring',
    'SchemaError',
    'SubclassProxyHandler',
    'SubscriptionResolver',
    'TypeDictionary',
    'TypeResolutionError',
    'UnresolvedFieldError',
    'UnwrapPlan',
    'WrapperKind',
    'connection_from_list',
]


class SchemaBinder:
    """Binds SDL type definitions to plain Python resolver objects.

    ``resolvers`` serve the root operation types; ``type_resolvers`` maps an object
    type name to one resolver (or a list of them) whose methods take the parent
    value as their first argument.
    """

    type_defs: Union[str, Sequence[str]]
    options: BindingOptions

    def __init__(
        self,
        type_defs: Union[str, Sequence[str]],
        resolvers: Iterable[Any] = (),
        type_resolvers: Optional[Mapping[str, Any]] = None,
        dictionary: Optional[Union[Mapping[str, type], Iterable[type]]] = None,
        directives: Optional[Mapping[str, DirectiveTransform]] = None,
        scalars: Optional[Mapping[str, GraphQLScalarType]] = None,
        options: Optional[BindingOptions] = None,
    ):
        self.type_defs = type_defs
        self.resolvers = list(resolvers)
        self.type_resolvers = dict(type_resolvers or {})
        self.dictionary = dictionary
        self.directives = dict(directives or {})
        self.scalars = dict(scalars or {})
        self.options = options or BindingOptions()
        self._wiring: Optional[BinderWiring] = None

    def bind(self) -> BinderWiring:
        # the schema objects are mutated while binding, so a wiring is built only once
        if self._wiring is None:
            registrations = register_resolvers(
                self.resolvers, self.type_resolvers, self.options.proxy_chain()
            )
            self._wiring = WiringBuilder(
                self.type_defs,
                registrations,
                TypeDictionary.from_entries(self.dictionary),
                self.directives,
                self.scalars,
                self.options,
            ).build()

        return self._wiring

    def make_executable_schema(self) -> GraphQLSchema:
        return self.bind().schema
