from typing import Any, Optional, Sequence

from graphql import GraphQLError, Node


class SchemaBindingError(GraphQLError):
    """Raised while building the wiring; never raised during query execution."""

    def __init__(self, message: str, node: Optional[Node] = None):
        super().__init__(message, node)


class SchemaError(SchemaBindingError):
    pass


class UnresolvedFieldError(SchemaBindingError):
    type_name: str
    field_name: str
    signatures: list[str]

    def __init__(
        self,
        type_name: str,
        field_name: str,
        signatures: Sequence[str] = (),
        node: Optional[Node] = None,
        reason: Optional[str] = None,
    ):
        self.type_name = type_name
        self.field_name = field_name
        self.signatures = list(signatures)

        message = f"No method found for field '{type_name}.{field_name}'"
        if reason:
            message += f' ({reason})'
        if self.signatures:
            message += (
                ' with any of the following signatures'
                ' (optionally followed by an info and/or context parameter),'
                ' in priority order:\n  ' + '\n  '.join(self.signatures)
            )

        super().__init__(message, node)


class AmbiguousFieldError(SchemaBindingError):
    type_name: str
    field_name: str
    candidates: list[str]

    def __init__(
        self,
        type_name: str,
        field_name: str,
        candidates: Sequence[str],
        node: Optional[Node] = None,
    ):
        self.type_name = type_name
        self.field_name = field_name
        self.candidates = list(candidates)

        super().__init__(
            f"Found more than one equally specific resolver method for field '{type_name}."
            f"{field_name}': {', '.join(self.candidates)}",
            node,
        )


class DuplicateMappingError(SchemaBindingError):
    type_name: Any
    classes: tuple[Any, Any]

    def __init__(self, type_name: Any, classes: tuple[Any, Any]):
        self.type_name = type_name
        self.classes = classes

        existing, conflicting = (_describe(cls) for cls in classes)
        super().__init__(
            f"Two different values bound to '{_describe(type_name)}': {existing} and {conflicting}"
        )


class InvalidWrapperUsageError(SchemaBindingError):
    type_name: str
    field_name: str
    wrapper_kind: Any

    def __init__(
        self,
        type_name: str,
        field_name: str,
        wrapper_kind: Any,
        node: Optional[Node] = None,
        detail: Optional[str] = None,
    ):
        self.type_name = type_name
        self.field_name = field_name
        self.wrapper_kind = wrapper_kind

        kind = getattr(wrapper_kind, 'value', wrapper_kind)
        message = f"Invalid use of a {kind} return type on field '{type_name}.{field_name}'"
        super().__init__(f'{message}: {detail}' if detail else message, node)


class BindingErrors(Exception):
    errors: list[SchemaBindingError]

    def __init__(self, errors: Sequence[SchemaBindingError]):
        self.errors = list(errors)
        super().__init__(
            f'{len(self.errors)} binding error(s):\n'
            + '\n'.join(f'- {error.message}' for error in self.errors)
        )


class ResolverError(Exception):
    pass


class TypeResolutionError(Exception):
    pass


def _describe(value: Any) -> str:
    if isinstance(value, str):
        return value
    return getattr(value, '__qualname__', None) or repr(value)
