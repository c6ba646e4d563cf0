"""Schema and resolvers shared across tests."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Optional, Union

from graphql import GraphQLResolveInfo

from graphql_schema_binder import (
    Connection,
    MutationResolver,
    QueryResolver,
    SubscriptionResolver,
    connection_from_list,
)

TYPE_DEFS = """
type Query {
  user(id: ID!): User
  users(role: Role): [User!]!
  userPage(first: Int, after: String): UserConnection @connection(for: "User")
  search(text: String!): [SearchResult!]!
  animals: [Animal!]!
  viewer: String
}

type Mutation {
  createUser(input: NewUser!): User!
}

type Subscription {
  userCreated(limit: Int!): User!
}

enum Role {
  ADMIN
  MEMBER
}

input NewUser {
  name: String!
  role: Role!
  favoriteNumber: Int
}

type User {
  id: ID!
  name: String!
  role: Role!
  isActive: Boolean!
  displayName: String!
  posts(first: Int): [Post!]!
}

type Post {
  id: ID!
  title: String!
  author: User!
}

union SearchResult = User | Post

interface Animal {
  name: String!
}

type Dog implements Animal {
  name: String!
  barks: Boolean!
}

type Cat implements Animal {
  name: String!
  lives: Int!
}
"""


class Role(Enum):
    ADMIN = 'admin'
    MEMBER = 'member'


@dataclass
class User:
    id: int
    name: str
    role: Role = Role.MEMBER
    is_active: bool = True

    @property
    def display_name(self) -> str:
        return f'{self.name} ({self.role.value})'


@dataclass
class Post:
    id: int
    title: str
    author_id: int


@dataclass
class NewUser:
    name: str
    role: Role
    favorite_number: Optional[int] = None


@dataclass
class Animal:
    name: str


@dataclass
class Dog(Animal):
    barks: bool = True


@dataclass
class Cat(Animal):
    lives: int = 9


@dataclass
class Context:
    viewer: str = 'anonymous'


@dataclass
class Store:
    users: list[User] = field(
        default_factory=lambda: [
            User(1, 'Ada', Role.ADMIN),
            User(2, 'Grace'),
            User(3, 'Linus', is_active=False),
        ]
    )
    posts: list[Post] = field(
        default_factory=lambda: [
            Post(10, 'Engines', 1),
            Post(11, 'Compilers', 2),
            Post(12, 'Notes', 1),
        ]
    )

    def user(self, user_id: int) -> Optional[User]:
        return next((user for user in self.users if user.id == user_id), None)


class Query(QueryResolver):
    def __init__(self, store: Store):
        self.store = store

    async def user(self, id: int) -> Optional[User]:  # pylint: disable=redefined-builtin
        await asyncio.sleep(0)
        return self.store.user(id)

    def users(self, role: Optional[Role]) -> list[User]:
        return [user for user in self.store.users if role is None or user.role is role]

    def user_page(self, first: Optional[int], after: Optional[str]) -> Connection[User]:
        return connection_from_list(self.store.users, first, after)

    def search(self, text: str) -> list[Union[User, Post]]:
        needle = text.lower()
        users = [user for user in self.store.users if needle in user.name.lower()]
        posts = [post for post in self.store.posts if needle in post.title.lower()]
        return [*users, *posts]

    def animals(self) -> list[Animal]:
        return [Dog('Rex'), Cat('Tom', lives=7)]

    def viewer(self, context: Context) -> str:
        return context.viewer


class Events:
    """Queue created on first use so it belongs to the running event loop."""

    def __init__(self):
        self._queue: Optional[asyncio.Queue] = None

    @property
    def queue(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue()
        return self._queue


class Mutation(MutationResolver):
    def __init__(self, store: Store, events: Events):
        self.store = store
        self.events = events

    def create_user(self, input: NewUser) -> User:  # pylint: disable=redefined-builtin
        user = User(len(self.store.users) + 1, input.name, input.role)
        self.store.users.append(user)
        self.events.queue.put_nowait(user)
        return user


class Subscription(SubscriptionResolver):
    def __init__(self, events: Events):
        self.events = events
        self.closed = False

    async def user_created(self, limit: int) -> AsyncIterator[User]:
        try:
            for _ in range(limit):
                yield await self.events.queue.get()
        finally:
            self.closed = True


class UserResolver:
    def __init__(self, store: Store):
        self.store = store

    def posts(self, user: User, first: Optional[int], info: GraphQLResolveInfo) -> list[Post]:
        posts = [post for post in self.store.posts if post.author_id == user.id]
        return posts[:first] if first is not None else posts


class PostResolver:
    def __init__(self, store: Store):
        self.store = store

    def author(self, post: Post) -> User:
        return self.store.user(post.author_id)
