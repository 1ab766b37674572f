"""
Tests for the caller-facing Get namespace and QueryHandle.
"""

from __future__ import annotations

import pytest

from namedquery import Get, configure, get, register_view
from namedquery.errors import InvalidArguments, NotFound, UndefinedAttribute, UnresolvableName
from namedquery.handles import QueryHandle, build_args
from namedquery.parser import parse_identifier
from namedquery.specs import QueryMode, RuntimeArgs
from namedquery.views import Collection, Entity


class TestNamespace:
    def test_attribute_access_returns_handle(self):
        handle = Get.UsersByLastName

        assert isinstance(handle, QueryHandle)
        assert handle.spec is parse_identifier("UsersByLastName")
        assert handle.key == "users_by_last_name"

    def test_get_function(self):
        assert get("EmployerFromUser").spec.mode == QueryMode.ASSOCIATION

    def test_malformed_name_raises_unresolvable(self):
        with pytest.raises(UnresolvableName):
            Get.UserId

    def test_private_names_are_attribute_errors(self):
        assert not hasattr(Get, "_private")

    def test_repr(self):
        assert repr(Get.UserById) == "QueryHandle('UserById')"


class TestRun:
    """End-to-end runs against the seeded memory store."""

    def test_scalar_value(self, configured):
        users = Get.UsersByLastName.run("Turner")

        assert isinstance(users, Collection)
        assert [u.first_name for u in users] == ["Alice", "Bob"]

    def test_call_is_run(self, configured):
        assert Get.UserById(1).first_name == "Bob"

    def test_keyword_filters(self, configured):
        user = Get.UserBy.run(last_name="Turner", first_name="Bob")
        assert user.id == 1

    def test_filter_mapping(self, configured):
        users = Get.UsersBy.run({"last_name": "Smith"})
        assert [u.first_name for u in users] == ["Carol"]

    def test_lenient_not_found(self, configured):
        assert Get.UserById.run(99) is None
        assert Get.UserByEmail.run("nobody@example.com") is None

    def test_strict_not_found(self, configured):
        with pytest.raises(NotFound):
            Get.UserById.run_strict(99)

    def test_strict_by_default_setting(self, configured):
        configure(strict_by_default=True)

        with pytest.raises(NotFound):
            Get.UserById.run(99)

    def test_association_from_entity(self, configured):
        user = Get.UserById.run(1)
        employer = Get.EmployerFromUser.run(user)

        assert employer.name == "Acme"

    def test_association_via(self, configured):
        user = Get.UserById.run(2)
        cars = Get.SportscarsFromUser.run(user, via=["employer"])

        assert [car.make for car in cars] == ["Ferrari", "Porsche"]

    def test_results_cannot_walk_relations(self, configured):
        user = Get.UserById.run(1)

        with pytest.raises(UndefinedAttribute):
            user.employer
        with pytest.raises(UndefinedAttribute):
            Get.UsersByLastName.run("Turner").where

    def test_registered_view(self, configured):
        class Turners(Collection):
            __slots__ = ()

            @property
            def first_names(self):
                return [u.first_name for u in self]

        register_view("UsersByLastName", Turners)

        users = Get.UsersByLastName.run("Turner")

        assert isinstance(users, Turners)
        assert users.first_names == ["Alice", "Bob"]

    def test_registration_is_per_identifier(self, configured):
        class Named(Entity):
            __slots__ = ()

        register_view("UserById", Named)

        assert isinstance(Get.UserById.run(1), Named)
        assert not isinstance(Get.UserByEmail.run("bob@example.com"), Named)

    def test_member_named_columns(self, configured):
        configured.port_for("sportscar").create(
            {"id": 3, "make": "Porsche", "model_name": "911", "to_dict": "x"}
        )

        car = Get.SportscarById.run(3)

        assert car.model_name == "911"
        assert car.to_dict == "x"
        assert type(car).model_name == "sportscar"


class TestBuildArgs:
    def test_field_value(self):
        spec = parse_identifier("UsersByLastName")
        assert build_args(spec, ("Turner",)) == RuntimeArgs(value="Turner")

    def test_field_needs_one_value(self):
        spec = parse_identifier("UsersByLastName")

        with pytest.raises(InvalidArguments):
            build_args(spec, ())
        with pytest.raises(InvalidArguments):
            build_args(spec, ("a", "b"))
        with pytest.raises(InvalidArguments):
            build_args(spec, ("a",), filters={"first_name": "b"})

    def test_filters_from_keywords_or_mapping(self):
        spec = parse_identifier("UserBy")

        assert build_args(spec, (), filters={"a": 1}).filters == {"a": 1}
        assert build_args(spec, ({"a": 1},)).filters == {"a": 1}

    def test_filters_cannot_mix_mapping_and_keywords(self):
        spec = parse_identifier("UserBy")
        with pytest.raises(InvalidArguments):
            build_args(spec, ({"a": 1},), filters={"b": 2})

    def test_filters_need_mapping(self):
        with pytest.raises(InvalidArguments):
            build_args(parse_identifier("UserBy"), ("Turner",))

    def test_association_subject(self):
        spec = parse_identifier("SportscarsFromUser")
        args = build_args(spec, (1,), via=["employer"])

        assert args.subject == 1
        assert args.via == ("employer",)

    def test_association_needs_one_subject(self):
        spec = parse_identifier("EmployerFromUser")

        with pytest.raises(InvalidArguments):
            build_args(spec, ())
        with pytest.raises(InvalidArguments):
            build_args(spec, (1, 2))

    def test_via_must_not_be_string(self):
        with pytest.raises(InvalidArguments):
            build_args(parse_identifier("SportscarsFromUser"), (1,), via="employer")

    def test_via_only_for_associations(self):
        with pytest.raises(InvalidArguments):
            build_args(parse_identifier("UserById"), (1,), via=["employer"])
