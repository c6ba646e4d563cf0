from collections.abc import Iterator, MutableMapping
from types import MappingProxyType
from typing import Generic, Iterable, Mapping, Optional, TypeVar, Union, overload

from graphql_schema_binder.errors import DuplicateMappingError

K = TypeVar('K')
V = TypeVar('V')
T = TypeVar('T')


class BiMap(Generic[K, V], MutableMapping[K, V]):
    """A one-to-one mapping whose inverse view shares the same storage.

    Binding a key or a value that is already bound to something else raises
    ``DuplicateMappingError``; re-binding an identical pair is a no-op.
    """

    _forward: dict[K, V]
    _backward: dict[V, K]
    _read_only: bool

    def __init__(self, entries: Optional[Union[Mapping[K, V], Iterable[tuple[K, V]]]] = None):
        self._forward = {}
        self._backward = {}
        self._read_only = False
        if entries is not None:
            self.update(entries)

    @classmethod
    def _view(cls, forward: dict, backward: dict, read_only: bool) -> 'BiMap':
        view = cls.__new__(cls)
        view._forward = forward
        view._backward = backward
        view._read_only = read_only
        return view

    def inverse(self) -> 'BiMap[V, K]':
        return BiMap._view(self._backward, self._forward, self._read_only)

    def frozen(self) -> 'BiMap[K, V]':
        return self._view(dict(self._forward), dict(self._backward), True)

    def put(self, key: K, value: V) -> Optional[V]:
        self._check_writable()

        if key in self._forward:
            existing = self._forward[key]
            if existing == value:
                return existing
            raise DuplicateMappingError(key, (existing, value))

        if value in self._backward:
            raise DuplicateMappingError(value, (self._backward[value], key))

        self._forward[key] = value
        self._backward[value] = key
        return None

    def __setitem__(self, key: K, value: V) -> None:
        self.put(key, value)

    def __getitem__(self, key: K) -> V:
        return self._forward[key]

    def __delitem__(self, key: K) -> None:
        self._check_writable()
        value = self._forward.pop(key)
        del self._backward[value]

    def remove(self, key: K) -> Optional[V]:
        if key not in self._forward:
            return None
        value = self._forward[key]
        del self[key]
        return value

    def __iter__(self) -> Iterator[K]:
        return iter(self._forward)

    def __len__(self) -> int:
        return len(self._forward)

    def __contains__(self, key: object) -> bool:
        return key in self._forward

    def contains_value(self, value: object) -> bool:
        return value in self._backward

    def clear(self) -> None:
        self._check_writable()
        self._forward.clear()
        self._backward.clear()

    def as_mapping(self) -> Mapping[K, V]:
        return MappingProxyType(self._forward)

    def _check_writable(self) -> None:
        if self._read_only:
            raise TypeError('This mapping is read-only')

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._forward!r})'


class TypeDictionary(BiMap[str, type]):
    """Schema type names bound to the Python classes that implement them."""

    @classmethod
    def from_entries(
        cls, entries: Optional[Union[Mapping[str, type], Iterable[type]]] = None
    ) -> 'TypeDictionary':
        dictionary = cls()
        if entries is None:
            return dictionary

        if isinstance(entries, Mapping):
            dictionary.update(entries)
        else:
            for class_ in entries:
                dictionary.put(class_.__name__, class_)

        return dictionary

    def class_for(self, type_name: str) -> Optional[type]:
        return self.get(type_name)

    @overload
    def type_name_for(self, class_: type) -> Optional[str]:
        ...

    @overload
    def type_name_for(self, class_: type, default: T) -> Union[str, T]:
        ...

    def type_name_for(self, class_, default=None):
        for candidate in class_.__mro__:
            if (name := self._backward.get(candidate)) is not None:
                return name

        return default

    def type_names_for(self, class_: type) -> Iterator[str]:
        for candidate in class_.__mro__:
            if (name := self._backward.get(candidate)) is not None:
                yield name
