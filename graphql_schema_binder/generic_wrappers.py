import asyncio
import concurrent.futures
import inspect
from collections.abc import AsyncGenerator, AsyncIterable, AsyncIterator, Awaitable, Coroutine
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from graphql import GraphQLResolveInfo

from graphql_schema_binder.utilities.typing_ import (
    Annotation,
    get_args,
    is_any,
    is_optional,
    raw_class,
    strip_optional,
)

Transformer = Callable[[Any, GraphQLResolveInfo], Any]


class WrapperKind(Enum):
    ASYNC = 'async'
    OPTIONAL = 'optional'
    SINGLE = 'single'
    STREAM = 'stream'

    @property
    def suspends(self) -> bool:
        return self in (WrapperKind.ASYNC, WrapperKind.SINGLE)


@dataclass(frozen=True)
class GenericWrapper:
    # ``Optional`` stands for ``Union[T, None]``; any other value is a (generic) class
    type: Any
    index: int
    kind: WrapperKind
    transformer: Optional[Transformer] = None

    def matches(self, annotation: Annotation, exact: bool = False) -> bool:
        if self.type is Optional:
            return is_optional(annotation)

        cls = raw_class(annotation)
        if cls is None:
            return False
        if exact:
            return cls is self.type

        return isinstance(self.type, type) and issubclass(cls, self.type)

    def inner(self, annotation: Annotation) -> Annotation:
        if self.type is Optional:
            return strip_optional(annotation)

        args = get_args(annotation)
        return args[self.index] if len(args) > self.index else Any


def _as_async_iterator(value: Any) -> Any:
    if isinstance(value, AsyncGenerator):
        return value
    if isinstance(value, AsyncIterable):
        return _close_on_exit(value)

    return value


async def _close_on_exit(stream: AsyncIterable) -> AsyncIterator:
    iterator = stream.__aiter__()
    try:
        async for item in iterator:
            yield item
    finally:
        if (aclose := getattr(iterator, 'aclose', None)) is not None:
            await aclose()


@dataclass(frozen=True)
class UnwrapStep:
    kind: WrapperKind
    wrapper: Optional[GenericWrapper] = None

    @property
    def suspends(self) -> bool:
        return self.kind.suspends

    def extract(self, value: Any, info: Optional[GraphQLResolveInfo]) -> Any:
        if self.wrapper is not None and self.wrapper.transformer is not None:
            value = self.wrapper.transformer(value, info)

        if self.kind is WrapperKind.SINGLE and isinstance(value, concurrent.futures.Future):
            # cancelling the awaiting task cancels the wrapped future as well
            return asyncio.wrap_future(value)
        if self.kind is WrapperKind.STREAM:
            return _as_async_iterator(value)

        return value

    def __repr__(self) -> str:
        return f'UnwrapStep({self.kind.value})'


@dataclass(frozen=True)
class UnwrapPlan:
    steps: tuple[UnwrapStep, ...] = ()
    value_type: Annotation = Any

    @property
    def kinds(self) -> tuple[WrapperKind, ...]:
        return tuple(step.kind for step in self.steps)

    @property
    def suspends(self) -> bool:
        return any(step.suspends for step in self.steps)

    @property
    def has_stream(self) -> bool:
        return WrapperKind.STREAM in self.kinds

    def apply(self, value: Any, info: Optional[GraphQLResolveInfo] = None) -> Any:
        for index, step in enumerate(self.steps):
            if value is None:
                return None
            if step.suspends:
                return _apply_async(value, self.steps[index:], info)
            value = step.extract(value, info)

        return value


async def _apply_async(
    value: Any, steps: tuple[UnwrapStep, ...], info: Optional[GraphQLResolveInfo]
) -> Any:
    for step in steps:
        if value is None:
            return None
        value = step.extract(value, info)
        if step.suspends:
            # nested awaitables collapse into this one coroutine
            while inspect.isawaitable(value):
                value = await value

    return value


def default_generic_wrappers() -> list[GenericWrapper]:
    return [
        GenericWrapper(Coroutine, 2, WrapperKind.ASYNC),
        GenericWrapper(asyncio.Task, 0, WrapperKind.ASYNC),
        GenericWrapper(asyncio.Future, 0, WrapperKind.ASYNC),
        GenericWrapper(Awaitable, 0, WrapperKind.ASYNC),
        GenericWrapper(concurrent.futures.Future, 0, WrapperKind.SINGLE),
        GenericWrapper(Optional, 0, WrapperKind.OPTIONAL),
        GenericWrapper(AsyncGenerator, 0, WrapperKind.STREAM),
        GenericWrapper(AsyncIterator, 0, WrapperKind.STREAM),
        GenericWrapper(AsyncIterable, 0, WrapperKind.STREAM),
    ]


class GenericWrapperCatalog:
    wrappers: list[GenericWrapper]

    def __init__(self, wrappers: Iterable[GenericWrapper] = (), use_defaults: bool = True):
        self.wrappers = list(wrappers)
        if use_defaults:
            self.wrappers.extend(default_generic_wrappers())

    def register(self, wrapper: GenericWrapper) -> None:
        self.wrappers.insert(0, wrapper)

    def match(self, annotation: Annotation) -> Optional[GenericWrapper]:
        if is_any(annotation):
            return None

        for exact in (True, False):
            for wrapper in self.wrappers:
                if wrapper.matches(annotation, exact=exact):
                    return wrapper

        return None

    def plan_unwrap(
        self, annotation: Annotation, function: Optional[Callable[..., Any]] = None
    ) -> UnwrapPlan:
        steps: list[UnwrapStep] = []
        current = annotation
        while (wrapper := self.match(current)) is not None:
            steps.append(UnwrapStep(wrapper.kind, wrapper))
            current = wrapper.inner(current)

        if function is not None:
            if inspect.isasyncgenfunction(function):
                if not steps or steps[0].kind is not WrapperKind.STREAM:
                    steps.insert(0, UnwrapStep(WrapperKind.STREAM))
            elif inspect.iscoroutinefunction(function):
                steps.insert(0, UnwrapStep(WrapperKind.ASYNC))

        return UnwrapPlan(tuple(_collapse(steps)), current)


def _collapse(steps: list[UnwrapStep]) -> list[UnwrapStep]:
    collapsed: list[UnwrapStep] = []
    for step in steps:
        previous = collapsed[-1] if collapsed else None
        if (
            previous is not None
            and previous.kind is WrapperKind.ASYNC
            and step.kind is WrapperKind.ASYNC
            and (step.wrapper is None or step.wrapper.transformer is None)
        ):
            continue
        collapsed.append(step)

    return collapsed
