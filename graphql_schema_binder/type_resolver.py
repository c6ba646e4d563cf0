from collections.abc import Mapping
from typing import Any, Union

from graphql import (
    GraphQLAbstractType,
    GraphQLInterfaceType,
    GraphQLResolveInfo,
    GraphQLUnionType,
    is_object_type,
)

from graphql_schema_binder.errors import TypeResolutionError
from graphql_schema_binder.type_dictionary import TypeDictionary


class DictionaryTypeResolver:
    dictionary: TypeDictionary
    abstract_type: Union[GraphQLInterfaceType, GraphQLUnionType]

    def __init__(
        self,
        dictionary: TypeDictionary,
        abstract_type: Union[GraphQLInterfaceType, GraphQLUnionType],
    ):
        self.dictionary = dictionary
        self.abstract_type = abstract_type

    def type_name_of(self, value: Any, info: GraphQLResolveInfo) -> str:
        if isinstance(value, Mapping) and isinstance(value.get('__typename'), str):
            return value['__typename']

        for name in self.dictionary.type_names_for(type(value)):
            if is_object_type(info.schema.get_type(name)):
                return name

        return type(value).__name__

    def __call__(
        self, value: Any, info: GraphQLResolveInfo, abstract_type: GraphQLAbstractType
    ) -> str:
        name = self.type_name_of(value, info)
        object_type = info.schema.get_type(name)
        if not is_object_type(object_type) or not info.schema.is_sub_type(
            abstract_type, object_type
        ):
            raise TypeResolutionError(self.error(name))

        return name

    def error(self, name: str) -> str:
        if isinstance(self.abstract_type, GraphQLInterfaceType):
            return (
                f"Expected object type with name '{name}' to implement interface"
                f" '{self.abstract_type.name}', but it doesn't!"
            )

        return (
            f"Expected object type with name '{name}' to exist for union"
            f" '{self.abstract_type.name}', but it doesn't!"
        )
