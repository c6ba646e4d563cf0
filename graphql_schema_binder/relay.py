from base64 import b64decode, b64encode
from dataclasses import dataclass, field
from typing import Generic, Optional, Protocol, Sequence, TypeVar

from graphql import (
    DefinitionNode,
    DirectiveDefinitionNode,
    DocumentNode,
    FieldDefinitionNode,
    NamedTypeNode,
    ObjectTypeDefinitionNode,
    StringValueNode,
    TypeDefinitionNode,
    TypeNode,
    parse,
)

CONNECTION_DIRECTIVE = 'connection'

CONNECTION_DIRECTIVE_SDL = 'directive @connection(for: String!) on FIELD_DEFINITION'

PAGE_INFO_SDL = """
type PageInfo {
  hasPreviousPage: Boolean!
  hasNextPage: Boolean!
  startCursor: String
  endCursor: String
}
"""

CURSOR_PREFIX = 'arrayconnection:'

T = TypeVar('T')


class TypeDefinitionFactory(Protocol):
    def create(self, document: DocumentNode) -> list[DefinitionNode]:
        ...


class RelayConnectionFactory:
    """Adds the connection, edge and PageInfo types that ``@connection(for: ...)``
    fields refer to but the document does not define."""

    def create(self, document: DocumentNode) -> list[DefinitionNode]:
        defined = {
            definition.name.value
            for definition in document.definitions
            if isinstance(definition, (TypeDefinitionNode, DirectiveDefinitionNode))
        }
        connections = self._connections(document)
        if not connections:
            return []

        sdl: list[str] = []
        for connection_type, node_type in connections:
            if connection_type not in defined:
                sdl.append(
                    f'type {connection_type} {{ edges: [{connection_type}Edge]'
                    f' pageInfo: PageInfo! }}'
                )
                defined.add(connection_type)
            if f'{connection_type}Edge' not in defined:
                sdl.append(
                    f'type {connection_type}Edge {{ cursor: String node: {node_type} }}'
                )
                defined.add(f'{connection_type}Edge')

        if 'PageInfo' not in defined:
            sdl.append(PAGE_INFO_SDL)
        if CONNECTION_DIRECTIVE not in defined:
            sdl.append(CONNECTION_DIRECTIVE_SDL)

        return list(parse('\n'.join(sdl), no_location=True).definitions) if sdl else []

    def _connections(self, document: DocumentNode) -> list[tuple[str, str]]:
        connections = []
        for field_node in _object_fields(document):
            for directive in field_node.directives or ():
                if directive.name.value != CONNECTION_DIRECTIVE:
                    continue
                node_type = next(
                    (
                        argument.value.value
                        for argument in directive.arguments or ()
                        if argument.name.value == 'for'
                        and isinstance(argument.value, StringValueNode)
                    ),
                    None,
                )
                if node_type is not None:
                    connections.append((_named_type(field_node.type), node_type))

        return connections


def _object_fields(document: DocumentNode) -> list[FieldDefinitionNode]:
    return [
        field_node
        for definition in document.definitions
        if isinstance(definition, ObjectTypeDefinitionNode)
        for field_node in definition.fields or ()
    ]


def _named_type(type_node: TypeNode) -> str:
    while not isinstance(type_node, NamedTypeNode):
        type_node = type_node.type

    return type_node.name.value


@dataclass
class PageInfo:
    has_previous_page: bool = False
    has_next_page: bool = False
    start_cursor: Optional[str] = None
    end_cursor: Optional[str] = None

    # graphql-core's default resolver looks fields up by their schema name
    @property
    def hasPreviousPage(self) -> bool:  # pylint: disable=invalid-name
        return self.has_previous_page

    @property
    def hasNextPage(self) -> bool:  # pylint: disable=invalid-name
        return self.has_next_page

    @property
    def startCursor(self) -> Optional[str]:  # pylint: disable=invalid-name
        return self.start_cursor

    @property
    def endCursor(self) -> Optional[str]:  # pylint: disable=invalid-name
        return self.end_cursor


@dataclass
class Edge(Generic[T]):
    node: T
    cursor: str


@dataclass
class Connection(Generic[T]):
    edges: list[Edge[T]] = field(default_factory=list)
    page_info: PageInfo = field(default_factory=PageInfo)

    @property
    def pageInfo(self) -> PageInfo:  # pylint: disable=invalid-name
        return self.page_info


def offset_to_cursor(offset: int) -> str:
    return b64encode(f'{CURSOR_PREFIX}{offset}'.encode()).decode('ascii')


def cursor_to_offset(cursor: str) -> Optional[int]:
    try:
        decoded = b64decode(cursor.encode('ascii')).decode()
    except ValueError:
        return None
    if not decoded.startswith(CURSOR_PREFIX):
        return None

    try:
        offset = int(decoded[len(CURSOR_PREFIX):])
    except ValueError:
        return None
    return offset if offset >= 0 else None


def connection_from_list(
    items: Sequence[T], first: Optional[int] = None, after: Optional[str] = None
) -> Connection[T]:
    start = 0
    if after is not None and (offset := cursor_to_offset(after)) is not None:
        start = offset + 1

    end = len(items) if first is None else min(len(items), start + max(first, 0))
    edges = [Edge(node=items[offset], cursor=offset_to_cursor(offset)) for offset in range(start, end)]

    return Connection(
        edges=edges,
        page_info=PageInfo(
            has_previous_page=start > 0,
            has_next_page=end < len(items),
            start_cursor=edges[0].cursor if edges else None,
            end_cursor=edges[-1].cursor if edges else None,
        ),
    )
