import asyncio
import concurrent.futures

import pytest
from graphql import graphql, parse, subscribe

from graphql_schema_binder import SchemaBinder
from tests.fixtures import Context, Role


@pytest.mark.asyncio
async def test_async_resolver_with_nested_type_resolvers(schema):
    result = await graphql(
        schema,
        """
        {
          user(id: "1") {
            id name role isActive displayName
            posts(first: 1) { title author { name } }
          }
        }
        """,
    )

    assert result.errors is None
    assert result.data == {
        'user': {
            'id': '1',
            'name': 'Ada',
            'role': 'ADMIN',
            'isActive': True,
            'displayName': 'Ada (admin)',
            'posts': [{'title': 'Engines', 'author': {'name': 'Ada'}}],
        }
    }


@pytest.mark.asyncio
async def test_async_resolver_returning_none(schema):
    result = await graphql(schema, '{ user(id: "99") { name } }')

    assert result.errors is None
    assert result.data == {'user': None}


@pytest.mark.asyncio
async def test_enum_argument_filters(schema):
    result = await graphql(schema, '{ admins: users(role: ADMIN) { name } everyone: users { name } }')

    assert result.data == {
        'admins': [{'name': 'Ada'}],
        'everyone': [{'name': 'Ada'}, {'name': 'Grace'}, {'name': 'Linus'}],
    }


@pytest.mark.asyncio
async def test_context_parameter(schema):
    result = await graphql(schema, '{ viewer }', context_value=Context('grace'))

    assert result.data == {'viewer': 'grace'}


@pytest.mark.asyncio
async def test_mutation_builds_input_object(schema, store):
    result = await graphql(
        schema,
        'mutation { createUser(input: {name: "Kay", role: ADMIN, favoriteNumber: 7}) { id role } }',
    )

    assert result.errors is None
    assert result.data == {'createUser': {'id': '4', 'role': 'ADMIN'}}
    assert store.users[-1].role is Role.ADMIN


@pytest.mark.asyncio
async def test_subscription_streams_events(schema):
    stream = await subscribe(schema, parse('subscription { userCreated(limit: 2) { name } }'))

    await graphql(schema, 'mutation { createUser(input: {name: "Kay", role: MEMBER}) { id } }')
    await graphql(schema, 'mutation { createUser(input: {name: "Lin", role: MEMBER}) { id } }')

    received = [result.data async for result in stream]

    assert received == [{'userCreated': {'name': 'Kay'}}, {'userCreated': {'name': 'Lin'}}]


@pytest.mark.asyncio
async def test_closing_a_subscription_closes_the_resolver_stream(schema, subscription):
    stream = await subscribe(schema, parse('subscription { userCreated(limit: 5) { name } }'))
    await graphql(schema, 'mutation { createUser(input: {name: "Kay", role: MEMBER}) { id } }')

    first = await stream.__anext__()
    await stream.aclose()

    assert first.data == {'userCreated': {'name': 'Kay'}}
    assert subscription.closed


class Failing:
    def broken(self) -> str:
        raise ValueError('resolver exploded')

    def fine(self) -> str:
        return 'ok'


@pytest.mark.asyncio
async def test_resolver_exceptions_become_field_errors():
    schema = SchemaBinder('type Query { broken: String fine: String }', [Failing()]).make_executable_schema()

    result = await graphql(schema, '{ broken fine }')

    assert result.data == {'broken': None, 'fine': 'ok'}
    assert result.errors[0].message == 'resolver exploded'
    assert result.errors[0].path == ['broken']


class Threaded:
    def __init__(self, executor):
        self.executor = executor

    def computed(self) -> 'concurrent.futures.Future[int]':
        return self.executor.submit(sum, [1, 2, 3])


@pytest.mark.asyncio
async def test_concurrent_future_results_are_awaited():
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        schema = SchemaBinder(
            'type Query { computed: Int! }', [Threaded(executor)]
        ).make_executable_schema()

        result = await asyncio.wait_for(graphql(schema, '{ computed }'), timeout=5)

    assert result.data == {'computed': 6}


class Holder:
    def __init__(self, value):
        self.value = value


class Wrong:
    pass


class HolderQuery:
    def __init__(self, holder):
        self.holder = holder

    def item(self) -> object:
        return self.holder


class HolderResolver:
    def value(self, holder: Holder) -> int:
        return holder.value


@pytest.mark.asyncio
async def test_type_resolver_checks_the_source_class():
    type_defs = 'type Query { item: Item } type Item { value: Int }'

    def execute(holder):
        schema = SchemaBinder(
            type_defs, [HolderQuery(holder)], type_resolvers={'Item': HolderResolver()}
        ).make_executable_schema()
        return graphql(schema, '{ item { value } }')

    good = await execute(Holder(3))
    bad = await execute(Wrong())

    assert good.data == {'item': {'value': 3}}
    assert bad.data == {'item': {'value': None}}
    assert bad.errors[0].message == 'Source type (Wrong) is not expected type (Holder)!'
