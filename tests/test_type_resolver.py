from graphql import graphql_sync

from graphql_schema_binder import SchemaBinder
from tests.fixtures import Animal, Post, Role, User

SEARCH = """
{
  search(text: "n") {
    __typename
    ... on User { name }
    ... on Post { title }
  }
}
"""


def test_union_members_resolve_through_the_dictionary(schema):
    result = graphql_sync(schema, SEARCH)

    assert result.errors is None
    assert result.data == {
        'search': [
            {'__typename': 'User', 'name': 'Linus'},
            {'__typename': 'Post', 'title': 'Engines'},
            {'__typename': 'Post', 'title': 'Notes'},
        ]
    }


def test_interface_falls_back_to_the_class_name(schema):
    result = graphql_sync(
        schema,
        '{ animals { __typename name ... on Dog { barks } ... on Cat { lives } } }',
    )

    assert result.errors is None
    assert result.data == {
        'animals': [
            {'__typename': 'Dog', 'name': 'Rex', 'barks': True},
            {'__typename': 'Cat', 'name': 'Tom', 'lives': 7},
        ]
    }


def test_discovered_classes_are_in_the_dictionary(wiring):
    assert wiring.dictionary.class_for('User') is User
    assert wiring.dictionary.class_for('Post') is Post
    assert wiring.dictionary.class_for('Role') is Role
    assert wiring.dictionary.class_for('Animal') is Animal
    assert wiring.dictionary.class_for('Dog') is None


TYPE_DEFS = """
type Query { pets: [Pet!]! }
union Pet = Fish | Bird
type Fish { fins: Int! }
type Bird { wings: Int! }
"""


class Hamster:
    pass


class PetResolver:
    def __init__(self, pets):
        self._pets = pets

    def pets(self):
        return self._pets


def test_mapping_values_name_their_type():
    schema = SchemaBinder(
        TYPE_DEFS, resolvers=[PetResolver([{'__typename': 'Bird', 'wings': 2}])]
    ).make_executable_schema()

    result = graphql_sync(schema, '{ pets { ... on Bird { wings } } }')

    assert result.errors is None
    assert result.data == {'pets': [{'wings': 2}]}


def test_unknown_value_is_a_field_error():
    schema = SchemaBinder(TYPE_DEFS, resolvers=[PetResolver([Hamster()])]).make_executable_schema()

    result = graphql_sync(schema, '{ pets { __typename } }')

    assert result.data is None
    assert result.errors[0].message == (
        "Expected object type with name 'Hamster' to exist for union 'Pet', but it doesn't!"
    )
    assert result.errors[0].path == ['pets', 0]
