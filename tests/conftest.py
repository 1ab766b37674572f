"""Shared pytest fixtures for namedquery tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from namedquery import configure, reset
from namedquery.adapters.memory import MemoryStore, ModelSpec, RelationKind, RelationSpec


@pytest.fixture(autouse=True)
def clean_state() -> Iterator[None]:
    """Reset process-wide caches, registrations and configuration around each test."""
    reset()
    yield
    reset()


@pytest.fixture
def models() -> list[ModelSpec]:
    """Employer / user / sportscar / post schema."""
    return [
        ModelSpec(
            name="employer",
            fields=["name"],
            relations=[
                RelationSpec(name="users", to_model="user", kind=RelationKind.ONE_TO_MANY),
                # Singular name on a to-many relation
                RelationSpec(
                    name="staff",
                    to_model="user",
                    kind=RelationKind.ONE_TO_MANY,
                    foreign_key="employer_id",
                ),
                RelationSpec(
                    name="sportscars", to_model="sportscar", kind=RelationKind.ONE_TO_MANY
                ),
            ],
        ),
        ModelSpec(
            name="user",
            fields=["first_name", "last_name", "email", "employer_id"],
            unique=["email"],
            relations=[
                RelationSpec(name="employer", to_model="employer", kind=RelationKind.MANY_TO_ONE),
                RelationSpec(name="posts", to_model="post", kind=RelationKind.ONE_TO_MANY),
            ],
        ),
        ModelSpec(
            name="sportscar",
            fields=["make", "employer_id"],
            relations=[
                RelationSpec(name="employer", to_model="employer", kind=RelationKind.MANY_TO_ONE),
            ],
        ),
        ModelSpec(
            name="post",
            fields=["title", "user_id"],
            relations=[
                RelationSpec(name="user", to_model="user", kind=RelationKind.MANY_TO_ONE),
            ],
        ),
    ]


@pytest.fixture
def store(models: list[ModelSpec]) -> MemoryStore:
    """A MemoryStore seeded with two employers, three users, two cars and a post."""
    store = MemoryStore(models)
    store.seed("employer", [{"id": 1, "name": "Acme"}, {"id": 2, "name": "Globex"}])
    store.seed(
        "user",
        [
            {
                "id": 1,
                "first_name": "Bob",
                "last_name": "Turner",
                "email": "bob@example.com",
                "employer_id": 1,
            },
            {
                "id": 2,
                "first_name": "Alice",
                "last_name": "Turner",
                "email": "alice@example.com",
                "employer_id": 1,
            },
            {
                "id": 3,
                "first_name": "Carol",
                "last_name": "Smith",
                "email": "carol@example.com",
                "employer_id": None,
            },
        ],
    )
    store.seed(
        "sportscar",
        [
            {"id": 1, "make": "Porsche", "employer_id": 1},
            {"id": 2, "make": "Ferrari", "employer_id": 1},
        ],
    )
    store.seed("post", [{"id": 1, "title": "Hello", "user_id": 1}])
    return store


@pytest.fixture
def configured(store: MemoryStore) -> MemoryStore:
    """Install the seeded store as the process-wide provider."""
    configure(store)
    return store
