"""Tests for the read-only Entity and Collection views."""

from __future__ import annotations

import pytest

from namedquery.errors import CannotProjectCollection, QueryError, UndefinedAttribute
from namedquery.views import Collection, Entity, as_dict


@pytest.fixture
def user() -> Entity:
    return Entity({"id": 1, "first_name": "Bob", "last_name": "Turner", "employer_id": 1})


@pytest.fixture
def users() -> Collection:
    return Collection(
        [
            {"id": 2, "first_name": "Alice", "last_name": "Turner"},
            {"id": 1, "first_name": "Bob", "last_name": "Turner"},
        ]
    )


class TestEntity:
    def test_attribute_and_key_access(self, user):
        assert user.first_name == "Bob"
        assert user["last_name"] == "Turner"
        assert user.employer_id == 1

    def test_relation_name_is_undefined(self, user):
        """Only attributes present in the record resolve; relations do not."""
        with pytest.raises(UndefinedAttribute) as exc_info:
            user.employer

        assert exc_info.value.context == {"attribute": "employer"}

    def test_undefined_attribute_is_attribute_error(self, user):
        assert not hasattr(user, "employer")
        assert getattr(user, "employer", None) is None

        with pytest.raises(AttributeError):
            user.posts
        with pytest.raises(QueryError):
            user.posts

    def test_missing_key(self, user):
        with pytest.raises(UndefinedAttribute):
            user["employer"]

    def test_read_only(self, user):
        with pytest.raises(AttributeError):
            user.first_name = "Robert"
        with pytest.raises(AttributeError):
            user.nickname = "Bobby"
        with pytest.raises(AttributeError):
            del user.first_name

        assert user.first_name == "Bob"

    def test_source_mapping_is_copied(self):
        record = {"id": 1, "name": "Acme"}
        employer = Entity(record)

        record["name"] = "Changed"

        assert employer.name == "Acme"

    def test_to_dict_returns_copy(self, user):
        data = user.to_dict()
        data["first_name"] = "Changed"

        assert user.first_name == "Bob"
        assert user.to_dict()["first_name"] == "Bob"

    def test_contains(self, user):
        assert "first_name" in user
        assert "employer" not in user

    def test_equality_and_hash(self, user):
        same = Entity(user.to_dict())
        other = Entity({"id": 2})

        assert user == same
        assert user != other
        assert hash(user) == hash(same)
        assert len({user, same, other}) == 2

    def test_equality_requires_same_type(self, user):
        class Special(Entity):
            __slots__ = ()

        assert Special(user.to_dict()) != user

    def test_repr(self):
        assert repr(Entity({"id": 1})) == "Entity(id=1)"

    def test_dir_lists_attributes(self, user):
        assert "last_name" in dir(user)

    def test_no_instance_dict(self, user):
        with pytest.raises(AttributeError):
            user.__dict__


class TestMemberNamedKeys:
    """Record keys that collide with view members still read the stored value."""

    def test_keys_win_over_class_members(self):
        car = Entity({"id": 1, "model_name": "911", "to_dict": "x"})

        assert car.model_name == "911"
        assert car.to_dict == "x"
        assert car["model_name"] == "911"
        assert type(car).model_name is None

    def test_keys_win_over_subclass_properties(self):
        class Labelled(Entity):
            __slots__ = ()

            @property
            def label(self):
                return "computed"

        assert Labelled({"label": "stored"}).label == "stored"
        assert Labelled({"id": 1}).label == "computed"

    def test_generated_view_keeps_model_name_on_type(self):
        from namedquery.view_registry import generate_entity_type

        view = generate_entity_type("sportscar")
        car = view({"id": 1, "model_name": "911"})

        assert car.model_name == "911"
        assert view.model_name == "sportscar"

    def test_as_dict_with_to_dict_key(self):
        car = Entity({"id": 1, "to_dict": "x"})
        assert as_dict(car) == {"id": 1, "to_dict": "x"}

    def test_as_dict_rejects_collection(self):
        with pytest.raises(CannotProjectCollection):
            as_dict(Collection([{"id": 1}]))

    def test_collection_of_member_named_records(self):
        cars = Collection([{"id": 1, "to_dict": "x"}])

        assert cars[0].to_dict == "x"
        assert cars.to_list() == [{"id": 1, "to_dict": "x"}]


class TestCollection:
    def test_sequence_behaviour(self, users):
        assert len(users) == 2
        assert [u.first_name for u in users] == ["Alice", "Bob"]
        assert users[0].id == 2
        assert users[-1].id == 1

    def test_elements_are_entities(self, users):
        assert all(isinstance(u, Entity) for u in users)

    def test_first_and_last(self, users):
        assert users.first.first_name == "Alice"
        assert users.last.first_name == "Bob"

    def test_empty(self):
        empty = Collection()

        assert len(empty) == 0
        assert not empty
        assert empty.first is None
        assert empty.last is None
        assert list(empty) == []

    def test_slice_keeps_type(self, users):
        class Users(Collection):
            __slots__ = ()

        typed = Users(users)
        head = typed[:1]

        assert isinstance(head, Users)
        assert len(head) == 1
        assert head[0].first_name == "Alice"

    def test_chaining_names_are_undefined(self, users):
        for name in ("where", "employer", "order", "filter"):
            with pytest.raises(UndefinedAttribute):
                getattr(users, name)

    def test_to_dict_raises(self, users):
        with pytest.raises(CannotProjectCollection):
            users.to_dict()

    def test_to_list(self, users):
        assert users.to_list() == [
            {"id": 2, "first_name": "Alice", "last_name": "Turner"},
            {"id": 1, "first_name": "Bob", "last_name": "Turner"},
        ]

    def test_read_only(self, users):
        with pytest.raises(AttributeError):
            users.extra = 1
        with pytest.raises(TypeError):
            users[0] = Entity({"id": 3})  # type: ignore[index]

    def test_contains_and_index(self, users):
        alice = Entity({"id": 2, "first_name": "Alice", "last_name": "Turner"})

        assert alice in users
        assert users.index(alice) == 0
        assert users.count(alice) == 1

    def test_equality(self, users):
        assert users == Collection(users.to_list())
        assert users != Collection(users.to_list()[:1])

    def test_unhashable(self, users):
        with pytest.raises(TypeError):
            hash(users)

    def test_custom_entity_type(self):
        class Employer(Entity):
            __slots__ = ()

            @property
            def label(self):
                return self.name.upper()

        class Employers(Collection):
            __slots__ = ()
            entity_type = Employer

        employers = Employers([{"id": 1, "name": "Acme"}])

        assert isinstance(employers[0], Employer)
        assert employers[0].label == "ACME"
