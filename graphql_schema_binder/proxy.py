import logging
import re
from typing import Any, Iterable, Pattern, Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ProxyHandler(Protocol):
    def can_handle(self, resolver: Any) -> bool:
        ...

    def target_class(self, resolver: Any) -> type:
        ...


class WrappedObjectProxyHandler:
    # wrapt.ObjectProxy and friends: the proxy reports the wrapped class through
    # ``__class__`` while ``type()`` still sees the proxy class
    def can_handle(self, resolver: Any) -> bool:
        try:
            wrapped = object.__getattribute__(resolver, '__wrapped__')
        except AttributeError:
            return False

        return type(wrapped) is not type(resolver)

    def target_class(self, resolver: Any) -> type:
        return type(object.__getattribute__(resolver, '__wrapped__'))


class SubclassProxyHandler:
    """Recognizes dynamically generated subclasses by their class name; the real
    implementation is the proxy's immediate superclass."""

    pattern: Pattern[str]

    def __init__(self, pattern: Union[str, Pattern[str]]):
        self.pattern = re.compile(pattern) if isinstance(pattern, str) else pattern

    def can_handle(self, resolver: Any) -> bool:
        class_ = type(resolver)
        return (
            bool(self.pattern.search(class_.__name__))
            and len(class_.__mro__) > 2
            and class_.__mro__[1] is not object
        )

    def target_class(self, resolver: Any) -> type:
        return type(resolver).__mro__[1]

    def __repr__(self) -> str:
        return f'SubclassProxyHandler({self.pattern.pattern!r})'


DEFAULT_SUBCLASS_PROXY_PATTERNS = (
    r'_\$\$_Proxy',
    r'^_Lazy[A-Z]\w*$',
)


def default_proxy_handlers() -> list[ProxyHandler]:
    handlers: list[ProxyHandler] = [WrappedObjectProxyHandler()]
    handlers.extend(SubclassProxyHandler(pattern) for pattern in DEFAULT_SUBCLASS_PROXY_PATTERNS)
    return handlers


def resolve_target_class(resolver: Any, handlers: Iterable[ProxyHandler]) -> type:
    for handler in handlers:
        if handler.can_handle(resolver):
            target = handler.target_class(resolver)
            logger.debug(
                'Resolver %r is a proxy (%r), inspecting %s instead',
                type(resolver).__name__,
                handler,
                target.__qualname__,
            )
            return target

    return type(resolver)
