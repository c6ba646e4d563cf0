"""Test configuration and fixtures for graphql-schema-binder."""

import pytest

from graphql_schema_binder import BindingOptions, SchemaBinder
from tests.fixtures import (
    TYPE_DEFS,
    Context,
    Events,
    Mutation,
    PostResolver,
    Query,
    Store,
    Subscription,
    UserResolver,
)


@pytest.fixture
def store():
    return Store()


@pytest.fixture
def events():
    return Events()


@pytest.fixture
def subscription(events):
    return Subscription(events)


@pytest.fixture
def binder(store, events, subscription):
    return SchemaBinder(
        TYPE_DEFS,
        resolvers=[Query(store), Mutation(store, events), subscription],
        type_resolvers={'User': UserResolver(store), 'Post': PostResolver(store)},
        options=BindingOptions(context_class=Context),
    )


@pytest.fixture
def wiring(binder):
    return binder.bind()


@pytest.fixture
def schema(wiring):
    return wiring.schema
