from typing import Any

from graphql import GraphQLField


# graphql-core fields do not know their own name; the binder needs it for lookups and
# error messages, while resolver assignment must still reach the schema's own field object
class NamedField:
    name: str
    field: GraphQLField

    def __init__(self, field: GraphQLField, name: str):
        self.field = field
        self.name = name

    def __getattr__(self, item: str) -> Any:
        return getattr(self.field, item)

    def __repr__(self) -> str:
        return f'<NamedField {self.name}: {self.field.type}>'
