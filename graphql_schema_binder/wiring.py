import inspect
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, TypeVar

from graphql import (
    ASTValidationRule,
    DocumentNode,
    GraphQLError,
    GraphQLObjectType,
    GraphQLResolveInfo,
    GraphQLScalarType,
    GraphQLSchema,
    NoSchemaIntrospectionCustomRule,
    build_ast_schema,
    get_named_type,
    is_abstract_type,
    is_enum_type,
    is_interface_type,
    is_introspection_type,
    is_object_type,
    is_scalar_type,
    is_union_type,
    parse,
    specified_rules,
    validate,
)

from graphql_schema_binder.arguments import ArgumentSource
from graphql_schema_binder.directives import DirectiveApplicator, DirectiveTransform
from graphql_schema_binder.errors import BindingErrors, SchemaBindingError, SchemaError
from graphql_schema_binder.field_binder import FieldBinder, FieldBinding, candidate_names, lookup_member
from graphql_schema_binder.options import BindingOptions
from graphql_schema_binder.resolvers import ResolverRegistration
from graphql_schema_binder.type_dictionary import TypeDictionary
from graphql_schema_binder.type_resolver import DictionaryTypeResolver
from graphql_schema_binder.utilities.graphql_ import fields_of, object_types, root_type_names
from graphql_schema_binder.utilities.typing_ import (
    Annotation,
    element_type,
    get_args,
    is_collection_class,
    is_union,
    is_user_class,
    resolve_type_hints,
    strip_optional,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

FieldKey = tuple[str, str]


@dataclass(frozen=True)
class BinderWiring:
    """Everything the execution engine needs: the schema with every fetch function and
    type resolver attached, plus the bindings and dictionary that produced them."""

    schema: GraphQLSchema
    bindings: Mapping[FieldKey, FieldBinding]
    dictionary: TypeDictionary
    validation_rules: tuple[type[ASTValidationRule], ...] = ()

    def binding_for(self, type_name: str, field_name: str) -> Optional[FieldBinding]:
        return self.bindings.get((type_name, field_name))

    def validate(self, document: DocumentNode) -> list[GraphQLError]:
        return validate(self.schema, document, [*specified_rules, *self.validation_rules])


def _pass_event(event: Any, _info: GraphQLResolveInfo, **_arguments: Any) -> Any:
    return event


def _join_type_defs(type_defs: Any) -> str:
    if isinstance(type_defs, str):
        return type_defs

    return '\n'.join(type_defs)


def _is_generic_class(cls: type) -> bool:
    return bool(getattr(cls, '__parameters__', ()))


class WiringBuilder:
    """Binds every field of a schema to its resolver, one type at a time.

    Root types are bound first; object types whose data class is discovered through
    return annotations follow breadth-first, and the remaining object types last.
    """

    options: BindingOptions
    registrations: list[ResolverRegistration]
    dictionary: TypeDictionary
    directives: Mapping[str, DirectiveTransform]
    scalars: Mapping[str, GraphQLScalarType]

    def __init__(
        self,
        type_defs: Any,
        registrations: list[ResolverRegistration],
        dictionary: Optional[TypeDictionary] = None,
        directives: Optional[Mapping[str, DirectiveTransform]] = None,
        scalars: Optional[Mapping[str, GraphQLScalarType]] = None,
        options: Optional[BindingOptions] = None,
    ):
        self.type_defs = _join_type_defs(type_defs)
        self.registrations = registrations
        self.dictionary = TypeDictionary.from_entries(dictionary)
        self.directives = directives or {}
        self.scalars = scalars or {}
        self.options = options or BindingOptions()
        self.binder = FieldBinder(self.options.wrapper_catalog(), self.options)

        self.errors: list[SchemaBindingError] = []
        self.bindings: dict[FieldKey, FieldBinding] = {}
        self.pending: deque[GraphQLObjectType] = deque()
        self.visited: set[str] = set()

    def build(self) -> BinderWiring:
        schema = self.schema = build_ast_schema(self.parse_document())
        if schema.query_type is None:
            raise SchemaError('Query root type must be provided.')

        self.check_dictionary()
        self.discover_from_type_resolvers()

        roots = root_type_names(schema)
        for type_name, operation in roots.items():
            self.visited.add(type_name)
            self.bind_root(schema.get_type(type_name), operation)

        self.drain_pending()
        for type_ in object_types(schema):
            if type_.name not in self.visited:
                self.pending.append(type_)
                self.drain_pending()

        self.guarded(self.bind_enums)
        self.guarded(self.apply_scalars)
        dictionary = self.dictionary.frozen()
        self.attach_type_resolvers(dictionary)
        self.apply_directives()

        if self.errors:
            raise BindingErrors(self.errors)

        return BinderWiring(
            schema=schema,
            bindings=MappingProxyType(dict(self.bindings)),
            dictionary=dictionary,
            validation_rules=(
                () if self.options.introspection_enabled else (NoSchemaIntrospectionCustomRule,)
            ),
        )

    def parse_document(self) -> DocumentNode:
        document = parse(self.type_defs)
        for factory in self.options.type_definition_factories:
            extra = factory.create(document)
            if not extra:
                continue

            logger.debug('%r generated definitions: %s', factory, [d.name.value for d in extra])
            document = DocumentNode(definitions=(*document.definitions, *extra), loc=document.loc)

        return document

    def guarded(self, step: Callable[..., T], *args: Any) -> Optional[T]:
        try:
            return step(*args)
        except SchemaBindingError as error:
            if not self.options.collect_errors:
                raise
            self.errors.append(error)
            return None

    def check_dictionary(self) -> None:
        for type_name, class_ in self.dictionary.items():
            if self.schema.get_type(type_name) is None:
                self.guarded(self._unknown_type, type_name, class_)
            elif is_object_type(self.schema.get_type(type_name)):
                self.pending.append(self.schema.get_type(type_name))

    @staticmethod
    def _unknown_type(type_name: str, class_: type) -> None:
        raise SchemaError(
            f"Type dictionary maps '{type_name}' to {class_.__qualname__},"
            f' but the schema does not define it'
        )

    def discover_from_type_resolvers(self) -> None:
        """Data classes named by the source parameter of type resolver methods."""
        for registration in self.registrations:
            type_ = self.schema.get_type(registration.type_name or '')
            if registration.is_root or not is_object_type(type_):
                continue

            for field in fields_of(type_):
                for name in candidate_names(field):
                    found = lookup_member(registration.target_class, name)
                    if found is None or not inspect.isfunction(found[1]):
                        continue
                    parameters = list(inspect.signature(found[1]).parameters)
                    if len(parameters) > 1:
                        annotation = resolve_type_hints(found[1]).get(parameters[1])
                        self.guarded(self.discover, type_.name, strip_optional(annotation), name)

    def bind_root(self, type_: GraphQLObjectType, operation: str) -> None:
        registrations = [
            registration
            for registration in self.registrations
            if registration.serves_root(operation) or registration.type_name == type_.name
        ]
        for field in fields_of(type_):
            binding = self.guarded(
                self.binder.bind_field, type_, field, registrations, None, operation
            )
            if binding is None:
                continue

            if operation == 'subscription':
                field.field.subscribe = binding
                field.field.resolve = _pass_event
            else:
                field.field.resolve = binding
            self.record(binding)

    def drain_pending(self) -> None:
        while self.pending:
            type_ = self.pending.popleft()
            if type_.name in self.visited:
                continue
            self.visited.add(type_.name)
            self.bind_object(type_)

    def bind_object(self, type_: GraphQLObjectType) -> None:
        registrations = [r for r in self.registrations if r.type_name == type_.name]
        data_class = self.dictionary.class_for(type_.name)
        if not registrations and data_class is None:
            logger.debug('No resolver or data class for %s, using default resolvers', type_.name)
            return

        for field in fields_of(type_):
            binding = self.guarded(
                self.binder.bind_field,
                type_,
                field,
                registrations,
                data_class,
                None,
                data_class is None or not (registrations or field.args),
            )
            if binding is not None:
                field.field.resolve = binding
                self.record(binding)

    def record(self, binding: FieldBinding) -> None:
        self.bindings[(binding.type_name, binding.field_name)] = binding

        type_ = self.schema.get_type(binding.type_name)
        field = type_.fields[binding.field_name]
        origin = binding.description
        for annotation in self.scanned_classes(binding.plan.value_type):
            self.guarded(self.discover, get_named_type(field.type).name, annotation, origin)

        for argument in binding.arguments:
            if argument.source is ArgumentSource.SOURCE:
                annotation = strip_optional(argument.annotation)
                self.guarded(self.discover, binding.type_name, annotation, origin)
            elif argument.source is ArgumentSource.SCHEMA and argument.graphql_type is not None:
                named = get_named_type(argument.graphql_type)
                if is_enum_type(named):
                    for annotation in self.scanned_classes(argument.annotation):
                        self.guarded(self.discover, named.name, annotation, origin)

    def scanned_classes(self, annotation: Annotation) -> Iterable[type]:
        annotation = strip_optional(annotation)
        while is_collection_class(annotation) and not is_user_class(annotation):
            annotation = strip_optional(element_type(annotation))

        if is_union(annotation):
            return [member for member in get_args(annotation) if is_user_class(member)]
        if is_user_class(annotation):
            return [annotation]

        return []

    def discover(self, type_name: str, class_: Any, origin: str) -> None:
        if not is_user_class(class_) or _is_generic_class(class_):
            return

        named = self.schema.get_type(type_name)
        if is_abstract_type(named):
            # a class named after one of the possible types stands for that type
            matches = [
                type_
                for type_ in self.schema.get_possible_types(named)
                if type_.name == class_.__name__
            ]
            if matches:
                named = matches[0]
            elif is_union_type(named):
                return

        if is_enum_type(named) != issubclass(class_, Enum):
            return
        if not (is_object_type(named) or is_interface_type(named) or is_enum_type(named)):
            return

        existing = self.dictionary.class_for(named.name)
        if existing is not None and (issubclass(class_, existing) or issubclass(existing, class_)):
            return
        if self.dictionary.contains_value(class_) and not is_object_type(named):
            return

        self.dictionary.put(named.name, class_)
        logger.debug('Discovered %s for %s through %s', class_.__qualname__, named.name, origin)
        if is_object_type(named) and named.name not in self.visited:
            self.pending.append(named)

    def bind_enums(self) -> None:
        for type_ in self.schema.type_map.values():
            if not is_enum_type(type_) or is_introspection_type(type_):
                continue
            class_ = self.dictionary.class_for(type_.name)
            if class_ is None or not issubclass(class_, Enum):
                continue

            for name, value in type_.values.items():
                if name not in class_.__members__:
                    raise SchemaError(
                        f"Enum value '{type_.name}.{name}' has no member in {class_.__qualname__}"
                    )
                value.value = class_[name]
            logger.debug('Bound enum %s to %s', type_.name, class_.__qualname__)

    def apply_scalars(self) -> None:
        for name, scalar in self.scalars.items():
            target = self.schema.get_type(name)
            if not is_scalar_type(target):
                raise SchemaError(f"Scalar '{name}' is not defined in the schema")

            target.serialize = scalar.serialize
            target.parse_value = scalar.parse_value
            target.parse_literal = scalar.parse_literal
            if target.description is None:
                target.description = scalar.description

    def attach_type_resolvers(self, dictionary: TypeDictionary) -> None:
        for type_ in self.schema.type_map.values():
            if is_abstract_type(type_) and not is_introspection_type(type_):
                type_.resolve_type = DictionaryTypeResolver(dictionary, type_)

    def apply_directives(self) -> None:
        applicator = DirectiveApplicator(self.schema, self.directives)
        for type_ in object_types(self.schema):
            for field in fields_of(type_):
                applicator.apply(type_, field)
