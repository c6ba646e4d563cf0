from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from graphql_schema_binder.proxy import ProxyHandler, resolve_target_class


class RootResolver:
    # root operation this resolver is limited to; None serves every root type
    operation: Optional[str] = None


class QueryResolver(RootResolver):
    operation = 'query'


class MutationResolver(RootResolver):
    operation = 'mutation'


class SubscriptionResolver(RootResolver):
    operation = 'subscription'


@dataclass(frozen=True)
class ResolverRegistration:
    type_name: Optional[str]
    resolver: Any
    target_class: type

    @property
    def is_root(self) -> bool:
        return self.type_name is None

    @property
    def operation(self) -> Optional[str]:
        if self.is_root and issubclass(self.target_class, RootResolver):
            return self.target_class.operation
        return None

    def serves_root(self, operation: str) -> bool:
        return self.is_root and self.operation in (None, operation)

    @property
    def name(self) -> str:
        return self.target_class.__qualname__


def register_resolvers(
    root_resolvers: Iterable[Any],
    type_resolvers: Optional[Mapping[str, Union[Any, Iterable[Any]]]],
    proxy_handlers: Iterable[ProxyHandler],
) -> list[ResolverRegistration]:
    handlers = list(proxy_handlers)
    registrations = [
        ResolverRegistration(None, resolver, resolve_target_class(resolver, handlers))
        for resolver in root_resolvers
    ]

    for type_name, resolvers in (type_resolvers or {}).items():
        if not isinstance(resolvers, (list, tuple)):
            resolvers = [resolvers]
        registrations.extend(
            ResolverRegistration(type_name, resolver, resolve_target_class(resolver, handlers))
            for resolver in resolvers
        )

    return registrations
