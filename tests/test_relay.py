from base64 import b64encode

from graphql import graphql_sync, parse

from graphql_schema_binder import BindingOptions, SchemaBinder
from graphql_schema_binder.relay import (
    RelayConnectionFactory,
    connection_from_list,
    cursor_to_offset,
    offset_to_cursor,
)

PAGE = """
query Page($first: Int, $after: String) {
  userPage(first: $first, after: $after) {
    edges { cursor node { name } }
    pageInfo { hasPreviousPage hasNextPage startCursor endCursor }
  }
}
"""


def test_factory_adds_missing_connection_types():
    document = parse(
        """
        type Query { items: ItemConnection @connection(for: "Item") }
        type Item { id: ID! }
        """
    )

    names = [definition.name.value for definition in RelayConnectionFactory().create(document)]

    assert names == ['ItemConnection', 'ItemConnectionEdge', 'PageInfo', 'connection']


def test_factory_keeps_existing_definitions():
    document = parse(
        """
        directive @connection(for: String!) on FIELD_DEFINITION
        type Query { items: ItemConnection! @connection(for: "Item") }
        type Item { id: ID! }
        type ItemConnection { edges: [ItemConnectionEdge] pageInfo: PageInfo! total: Int }
        type PageInfo { hasNextPage: Boolean! hasPreviousPage: Boolean! }
        """
    )

    names = [definition.name.value for definition in RelayConnectionFactory().create(document)]

    assert names == ['ItemConnectionEdge']


def test_documents_without_connections_are_untouched():
    assert RelayConnectionFactory().create(parse('type Query { ok: Int }')) == []


def test_cursors_are_opaque_offsets():
    cursor = offset_to_cursor(4)

    assert cursor == 'YXJyYXljb25uZWN0aW9uOjQ='
    assert cursor_to_offset(cursor) == 4
    assert cursor_to_offset('not a cursor') is None


def test_connection_from_list_slices_forward():
    connection = connection_from_list(['a', 'b', 'c', 'd'], first=2, after=offset_to_cursor(0))

    assert [edge.node for edge in connection.edges] == ['b', 'c']
    assert connection.page_info.has_previous_page
    assert connection.page_info.has_next_page
    assert connection.page_info.end_cursor == offset_to_cursor(2)


def test_connection_field_executes(schema):
    first = graphql_sync(schema, PAGE, variable_values={'first': 2})

    assert first.errors is None
    page = first.data['userPage']
    assert [edge['node']['name'] for edge in page['edges']] == ['Ada', 'Grace']
    assert page['pageInfo'] == {
        'hasPreviousPage': False,
        'hasNextPage': True,
        'startCursor': offset_to_cursor(0),
        'endCursor': offset_to_cursor(1),
    }

    rest = graphql_sync(schema, PAGE, variable_values={'after': page['pageInfo']['endCursor']})

    assert [edge['node']['name'] for edge in rest.data['userPage']['edges']] == ['Linus']
    assert rest.data['userPage']['pageInfo']['hasNextPage'] is False


def test_negative_cursor_restarts_from_the_beginning():
    cursor = b64encode(b'arrayconnection:-3').decode('ascii')

    connection = connection_from_list(['a', 'b', 'c', 'd'], after=cursor)

    assert cursor_to_offset(cursor) is None
    assert [edge.node for edge in connection.edges] == ['a', 'b', 'c', 'd']
    assert not connection.page_info.has_previous_page


class VersionFactory:
    def create(self, document):
        return list(parse('extend type Query { version: String! }').definitions)


class VersionQuery:
    def ping(self) -> bool:
        return True

    def version(self) -> str:
        return '1.0'


def test_type_definition_factories_are_configurable():
    options = BindingOptions(type_definition_factories=[VersionFactory()])

    schema = SchemaBinder(
        'type Query { ping: Boolean! }', [VersionQuery()], options=options
    ).make_executable_schema()

    assert graphql_sync(schema, '{ ping version }').data == {'ping': True, 'version': '1.0'}
    assert isinstance(BindingOptions().type_definition_factories[0], RelayConnectionFactory)
