import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

from graphql import (
    DirectiveNode,
    GraphQLDirective,
    GraphQLField,
    GraphQLObjectType,
    GraphQLSchema,
    default_field_resolver,
)
from graphql.execution.values import get_argument_values

from graphql_schema_binder.shims import NamedField

logger = logging.getLogger(__name__)


@dataclass
class DirectiveEnvironment:
    schema: GraphQLSchema
    parent_type: GraphQLObjectType
    field_name: str
    field: GraphQLField
    directive: GraphQLDirective
    arguments: dict[str, Any]

    @property
    def resolve(self) -> Callable[..., Any]:
        return self.field.resolve or default_field_resolver

    def wrap_resolve(self, after: Callable[[Any], Any]) -> GraphQLField:
        """Post-process whatever the current fetch function produces, awaiting first
        when the result is awaitable."""
        resolve = self.resolve

        async def finish(pending: Any) -> Any:
            return after(await pending)

        def wrapped(source: Any, info: Any, **arguments: Any) -> Any:
            result = resolve(source, info, **arguments)
            if inspect.isawaitable(result):
                return finish(result)
            return after(result)

        self.field.resolve = wrapped
        return self.field


class SchemaDirectiveWiring:
    def on_field(self, environment: DirectiveEnvironment) -> GraphQLField:
        return environment.field

    def __call__(self, environment: DirectiveEnvironment) -> GraphQLField:
        return self.on_field(environment)


DirectiveTransform = Union[SchemaDirectiveWiring, Callable[[DirectiveEnvironment], GraphQLField]]


class DirectiveApplicator:
    schema: GraphQLSchema
    transforms: Mapping[str, DirectiveTransform]

    def __init__(self, schema: GraphQLSchema, transforms: Optional[Mapping[str, DirectiveTransform]]):
        self.schema = schema
        self.transforms = transforms or {}

    def apply(self, parent_type: GraphQLObjectType, field: NamedField) -> GraphQLField:
        output = field.field
        for node in _applied_directives(field.field):
            name = node.name.value
            transform = self.transforms.get(name)
            if transform is None:
                continue

            directive = self.schema.get_directive(name)
            if directive is None:
                # undeclared directives are reported by schema validation
                continue

            environment = DirectiveEnvironment(
                schema=self.schema,
                parent_type=parent_type,
                field_name=field.name,
                field=output,
                directive=directive,
                arguments=_directive_arguments(directive, node),
            )
            output = transform(environment)
            logger.debug('Applied @%s to %s.%s', name, parent_type.name, field.name)

        if output is not field.field:
            parent_type.fields[field.name] = output

        return output


def _applied_directives(field: GraphQLField) -> tuple[DirectiveNode, ...]:
    if field.ast_node is None:
        return ()

    return tuple(field.ast_node.directives or ())


def _directive_arguments(directive: GraphQLDirective, node: DirectiveNode) -> dict[str, Any]:
    return get_argument_values(directive, node)
