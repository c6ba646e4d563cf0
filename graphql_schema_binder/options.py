from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from graphql_schema_binder.generic_wrappers import GenericWrapper, GenericWrapperCatalog
from graphql_schema_binder.proxy import ProxyHandler, default_proxy_handlers
from graphql_schema_binder.relay import RelayConnectionFactory, TypeDefinitionFactory

FetchFunction = Callable[..., Any]


@dataclass
class BindingOptions:
    generic_wrappers: list[GenericWrapper] = field(default_factory=list)
    use_default_generic_wrappers: bool = True
    proxy_handlers: list[ProxyHandler] = field(default_factory=list)
    context_class: Optional[type] = None
    allow_unimplemented_resolvers: bool = False
    missing_resolver: Optional[FetchFunction] = None
    collect_errors: bool = False
    prefer_type_resolvers: bool = True
    introspection_enabled: bool = True
    type_definition_factories: list[TypeDefinitionFactory] = field(
        default_factory=lambda: [RelayConnectionFactory()]
    )

    @property
    def allows_missing_fields(self) -> bool:
        return self.allow_unimplemented_resolvers or self.missing_resolver is not None

    def wrapper_catalog(self) -> GenericWrapperCatalog:
        return GenericWrapperCatalog(self.generic_wrappers, self.use_default_generic_wrappers)

    def proxy_chain(self) -> list[ProxyHandler]:
        return default_proxy_handlers() + list(self.proxy_handlers)
