import inspect
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from graphql import GraphQLObjectType, GraphQLResolveInfo

from graphql_schema_binder.arguments import (
    ArgumentBinding,
    ArgumentSource,
    environment_source,
    match_score,
)
from graphql_schema_binder.errors import (
    AmbiguousFieldError,
    InvalidWrapperUsageError,
    ResolverError,
    UnresolvedFieldError,
)
from graphql_schema_binder.generic_wrappers import GenericWrapperCatalog, UnwrapPlan, WrapperKind
from graphql_schema_binder.options import BindingOptions
from graphql_schema_binder.resolvers import ResolverRegistration, RootResolver
from graphql_schema_binder.shims import NamedField
from graphql_schema_binder.utilities.graphql_ import (
    capitalize,
    is_boolean_field,
    is_nullable,
    to_snake_case,
)
from graphql_schema_binder.utilities.typing_ import (
    Annotation,
    describe,
    is_any,
    is_mapping_class,
    resolve_type_hints,
)

logger = logging.getLogger(__name__)

# attributes every resolver or data class inherits and which never answer a field
_IGNORED_OWNERS = (object, RootResolver)


class BindingKind(Enum):
    RESOLVER_METHOD = 'resolver method'
    SOURCE_METHOD = 'source method'
    SOURCE_ATTRIBUTE = 'source attribute'
    SOURCE_MAPPING = 'source mapping'
    MISSING = 'missing'


@dataclass(frozen=True)
class FieldBinding:
    type_name: str
    field_name: str
    kind: BindingKind
    member_name: str
    arguments: tuple[ArgumentBinding, ...] = ()
    plan: UnwrapPlan = UnwrapPlan()
    owner: Optional[type] = None
    target: Optional[Callable[..., Any]] = field(default=None, compare=False, repr=False)

    @property
    def coordinates(self) -> str:
        return f'{self.type_name}.{self.field_name}'

    @property
    def description(self) -> str:
        owner = self.owner.__qualname__ if self.owner is not None else '?'
        return f'{owner}.{self.member_name}'

    def invoke(self, source: Any, info: GraphQLResolveInfo, arguments: dict[str, Any]) -> Any:
        positional = []
        keywords = {}
        for argument in self.arguments:
            value = argument.resolve(source, info, arguments)
            if argument.keyword:
                keywords[argument.parameter or argument.name] = value
            else:
                positional.append(value)

        if self.kind is BindingKind.RESOLVER_METHOD:
            return self.target(*positional, **keywords)
        if self.kind is BindingKind.SOURCE_METHOD:
            return getattr(source, self.member_name)(*positional, **keywords)
        if self.kind is BindingKind.SOURCE_ATTRIBUTE:
            return getattr(source, self.member_name)
        if self.kind is BindingKind.SOURCE_MAPPING:
            return source.get(self.member_name)

        return self.target(source, info, **arguments)

    def __call__(self, source: Any, info: GraphQLResolveInfo, **arguments: Any) -> Any:
        return self.plan.apply(self.invoke(source, info, arguments), info)


@dataclass(frozen=True)
class _Candidate:
    binding: FieldBinding
    specificity: tuple[int, int, int]


@dataclass
class _Search:
    owner: type
    registration: Optional[ResolverRegistration] = None

    @property
    def on_source(self) -> bool:
        return self.registration is None

    @property
    def takes_source(self) -> bool:
        return self.registration is not None and not self.registration.is_root


def candidate_names(field: NamedField) -> list[str]:
    snake = to_snake_case(field.name)
    names = [field.name, snake]
    if is_boolean_field(field.field):
        names.extend([f'is{capitalize(field.name)}', f'is_{snake}'])
    names.extend([f'get{capitalize(field.name)}', f'get_{snake}'])
    names.extend([f'getField{capitalize(field.name)}', f'get_field_{snake}'])
    return list(dict.fromkeys(names))


def lookup_member(owner: type, name: str) -> Optional[tuple[type, Any]]:
    if name.startswith('_'):
        return None

    for klass in owner.__mro__:
        if klass in _IGNORED_OWNERS:
            continue
        if name in vars(klass):
            return klass, vars(klass)[name]

    return None


def annotated_attributes(owner: type) -> dict[str, Annotation]:
    attributes: dict[str, Annotation] = {}
    for klass in reversed(owner.__mro__):
        if klass in _IGNORED_OWNERS:
            continue
        for name in getattr(klass, '__slots__', ()):
            attributes.setdefault(name, Any)
        for name in vars(klass).get('__annotations__', {}):
            attributes.setdefault(name, Any)

    if attributes:
        hints = resolve_type_hints(owner)
        attributes.update({name: hints[name] for name in attributes if name in hints})

    return attributes


def constructor_attributes(owner: type) -> dict[str, Annotation]:
    """Parameters of the constructor, taken as the attributes it assigns."""
    try:
        signature = inspect.signature(owner)
    except (TypeError, ValueError):
        return {}

    initializer = owner.__init__
    hints = resolve_type_hints(initializer) if inspect.isfunction(initializer) else {}
    return {
        name: hints.get(name, Any)
        for name, parameter in signature.parameters.items()
        if parameter.kind not in (parameter.VAR_POSITIONAL, parameter.VAR_KEYWORD)
        and not name.startswith('_')
    }


class FieldBinder:
    """Finds the resolver member answering each field of an object type."""

    catalog: GenericWrapperCatalog
    options: BindingOptions

    def __init__(self, catalog: GenericWrapperCatalog, options: BindingOptions):
        self.catalog = catalog
        self.options = options

    def bind_field(
        self,
        parent_type: GraphQLObjectType,
        field: NamedField,
        registrations: list[ResolverRegistration],
        data_class: Optional[type] = None,
        operation: Optional[str] = None,
        default_on_missing: bool = False,
    ) -> Optional[FieldBinding]:
        resolver_searches = [_Search(reg.target_class, reg) for reg in registrations]
        source_searches = [_Search(data_class)] if data_class is not None else []
        groups = (
            [resolver_searches, source_searches]
            if self.options.prefer_type_resolvers or operation is not None
            else [source_searches, resolver_searches]
        )

        rejections: list[str] = []
        for searches in groups:
            candidates = []
            for search in searches:
                if (candidate := self._find(parent_type, field, search, rejections)) is not None:
                    candidates.append(candidate)

            if candidates:
                binding = self._select(parent_type, field, candidates)
                self._check_wrappers(parent_type, field, binding, operation)
                logger.debug('Bound %s to %s', binding.coordinates, binding.description)
                return binding

        if default_on_missing:
            logger.debug(
                'No member answers %s.%s, keeping the default resolver', parent_type.name, field.name
            )
            return None

        return self._missing(parent_type, field, [s for g in groups for s in g], rejections)

    def _find(
        self,
        parent_type: GraphQLObjectType,
        field: NamedField,
        search: _Search,
        rejections: list[str],
    ) -> Optional[_Candidate]:
        for priority, name in enumerate(candidate_names(field)):
            if (found := lookup_member(search.owner, name)) is None:
                continue

            _, member = found
            if isinstance(member, property):
                candidate = self._bind_property(parent_type, field, search, name, member, priority)
            else:
                candidate = self._bind_method(
                    parent_type, field, search, name, member, priority, rejections
                )
            if candidate is not None:
                return candidate

        if search.on_source and not field.args:
            return self._bind_source_attribute(parent_type, field, search)

        return None

    def _bind_method(
        self,
        parent_type: GraphQLObjectType,
        field: NamedField,
        search: _Search,
        name: str,
        member: Any,
        priority: int,
        rejections: list[str],
    ) -> Optional[_Candidate]:
        if isinstance(member, staticmethod):
            function, skip = member.__func__, 0
        elif isinstance(member, classmethod):
            function, skip = member.__func__, 1
        elif inspect.isfunction(member):
            function, skip = member, 1
        else:
            return None

        analysed = self._analyse_parameters(field, search, function, skip)
        if isinstance(analysed, str):
            rejections.append(f'{search.owner.__qualname__}.{name}: {analysed}')
            return None

        arguments, argument_score, environment_count = analysed
        hints = resolve_type_hints(function)
        plan = self.catalog.plan_unwrap(hints.get('return', Any), function)

        if search.on_source:
            kind, target = BindingKind.SOURCE_METHOD, None
        else:
            kind, target = BindingKind.RESOLVER_METHOD, getattr(search.registration.resolver, name)

        binding = FieldBinding(
            type_name=parent_type.name,
            field_name=field.name,
            kind=kind,
            member_name=name,
            arguments=arguments,
            plan=plan,
            owner=search.owner,
            target=target,
        )
        return _Candidate(binding, (priority, argument_score, environment_count))

    def _analyse_parameters(
        self, field: NamedField, search: _Search, function: Callable[..., Any], skip: int
    ) -> Union[str, tuple[tuple[ArgumentBinding, ...], int, int]]:
        try:
            signature = inspect.signature(function)
        except (TypeError, ValueError) as error:
            return f'signature unavailable ({error})'

        parameters = list(signature.parameters.values())[skip:]
        if any(p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD) for p in parameters):
            return 'variadic parameters are not supported'

        hints = resolve_type_hints(function)
        bindings: list[ArgumentBinding] = []

        if search.takes_source:
            if not parameters:
                return 'expected the source object as first parameter'
            source = parameters.pop(0)
            bindings.append(
                ArgumentBinding(
                    source.name,
                    0,
                    ArgumentSource.SOURCE,
                    hints.get(source.name, Any),
                    keyword=source.kind is source.KEYWORD_ONLY,
                )
            )

        schema_arguments = list(field.args.items())
        extra = len(parameters) - len(schema_arguments)
        if extra < 0 or extra > 2:
            return (
                f'expected {len(schema_arguments)} argument(s) plus at most an info and a'
                f' context parameter, found {len(parameters)}'
            )

        environment: list[ArgumentBinding] = []
        for parameter in parameters[len(schema_arguments):]:
            annotation = hints.get(parameter.name, Any)
            source_kind = environment_source(parameter, annotation, self.options.context_class)
            if source_kind is None or any(e.source is source_kind for e in environment):
                return f"parameter '{parameter.name}' is neither an info nor a context parameter"
            environment.append(
                ArgumentBinding(
                    parameter.name,
                    len(bindings) + len(schema_arguments) + len(environment),
                    source_kind,
                    annotation,
                    keyword=parameter.kind is parameter.KEYWORD_ONLY,
                )
            )

        score = 0
        for (argument_name, argument), parameter in zip(schema_arguments, parameters):
            annotation = hints.get(parameter.name, Any)
            if (argument_score := match_score(argument.type, annotation)) is None:
                return (
                    f"parameter '{parameter.name}: {describe(annotation)}' cannot receive"
                    f" argument '{argument_name}: {argument.type}'"
                )
            score += argument_score
            bindings.append(
                ArgumentBinding(
                    argument_name,
                    len(bindings),
                    ArgumentSource.SCHEMA,
                    annotation,
                    argument.type,
                    is_nullable(argument.type),
                    keyword=parameter.kind is parameter.KEYWORD_ONLY,
                    parameter=parameter.name,
                )
            )

        return tuple(bindings + environment), score, len(environment)

    def _bind_property(
        self,
        parent_type: GraphQLObjectType,
        field: NamedField,
        search: _Search,
        name: str,
        member: property,
        priority: int,
    ) -> Optional[_Candidate]:
        if not search.on_source or field.args or member.fget is None:
            return None

        hints = resolve_type_hints(member.fget)
        binding = FieldBinding(
            type_name=parent_type.name,
            field_name=field.name,
            kind=BindingKind.SOURCE_ATTRIBUTE,
            member_name=name,
            plan=self.catalog.plan_unwrap(hints.get('return', Any)),
            owner=search.owner,
        )
        return _Candidate(binding, (priority, 0, 0))

    def _bind_source_attribute(
        self, parent_type: GraphQLObjectType, field: NamedField, search: _Search
    ) -> Optional[_Candidate]:
        owner = search.owner
        names = candidate_names(field)
        if is_mapping_class(owner):
            binding = FieldBinding(
                type_name=parent_type.name,
                field_name=field.name,
                kind=BindingKind.SOURCE_MAPPING,
                member_name=field.name,
                owner=owner,
            )
            return _Candidate(binding, (len(names), 0, 0))

        attributes = {**constructor_attributes(owner), **annotated_attributes(owner)}
        for name in names:
            if name in attributes:
                annotation = attributes[name]
            elif (found := lookup_member(owner, name)) is not None and not callable(found[1]):
                annotation = Any
            else:
                continue

            binding = FieldBinding(
                type_name=parent_type.name,
                field_name=field.name,
                kind=BindingKind.SOURCE_ATTRIBUTE,
                member_name=name,
                plan=self.catalog.plan_unwrap(annotation),
                owner=owner,
            )
            return _Candidate(binding, (len(names), 0, 0))

        return None

    def _select(
        self, parent_type: GraphQLObjectType, field: NamedField, candidates: list[_Candidate]
    ) -> FieldBinding:
        best = min(candidate.specificity for candidate in candidates)
        winners = [candidate for candidate in candidates if candidate.specificity == best]
        if len(winners) > 1:
            raise AmbiguousFieldError(
                parent_type.name,
                field.name,
                [winner.binding.description for winner in winners],
                field.ast_node,
            )

        return winners[0].binding

    def _check_wrappers(
        self,
        parent_type: GraphQLObjectType,
        field: NamedField,
        binding: FieldBinding,
        operation: Optional[str],
    ) -> None:
        plan = binding.plan
        if operation == 'subscription':
            if not plan.has_stream and (plan.steps or not is_any(plan.value_type)):
                raise InvalidWrapperUsageError(
                    parent_type.name,
                    field.name,
                    plan.kinds[0] if plan.steps else describe(plan.value_type),
                    field.ast_node,
                    'a subscription field must return an async iterable of events',
                )
        elif plan.has_stream:
            raise InvalidWrapperUsageError(
                parent_type.name,
                field.name,
                WrapperKind.STREAM,
                field.ast_node,
                'streams are only accepted on subscription fields',
            )

    def _missing(
        self,
        parent_type: GraphQLObjectType,
        field: NamedField,
        searches: list[_Search],
        rejections: list[str],
    ) -> FieldBinding:
        if not self.options.allows_missing_fields:
            raise UnresolvedFieldError(
                parent_type.name,
                field.name,
                missing_signatures(field, searches),
                field.ast_node,
                '; '.join(rejections) or None,
            )

        if self.options.allow_unimplemented_resolvers:
            logger.warning('Missing resolver for field %s.%s', parent_type.name, field.name)

        return FieldBinding(
            type_name=parent_type.name,
            field_name=field.name,
            kind=BindingKind.MISSING,
            member_name=field.name,
            target=self.options.missing_resolver or _unimplemented(parent_type.name, field.name),
        )


def missing_signatures(field: NamedField, searches: list['_Search']) -> list[str]:
    signatures = []
    for search in searches:
        arguments = [f'~{name}' for name in field.args]
        if search.takes_source:
            arguments.insert(0, search.registration.type_name)
        argument_list = ', '.join(arguments)
        owner = search.owner.__qualname__
        signatures.extend(f'{owner}.{name}({argument_list})' for name in candidate_names(field))
        if search.on_source and not field.args:
            signatures.append(f'{owner}.{field.name}')

    return signatures


def _unimplemented(type_name: str, field_name: str) -> Callable[..., Any]:
    def fetch(_source: Any, _info: GraphQLResolveInfo, **_arguments: Any) -> Any:
        raise ResolverError(f'No resolver implemented for field {type_name}.{field_name}')

    return fetch
