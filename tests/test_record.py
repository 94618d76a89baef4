"""Versioned mixin tests."""

import pytest
from sample_records import Address, Customer, LegacyRecord, Note, User

from gitversioned.record import Versioned
from gitversioned.serializer import deserialize, serialize


class TestIdentityAndType:
    def test_type_defaults_to_class_name(self):
        assert User.version_type() == "User"
        assert Note("n1", "hi").version_type() == "Note"

    def test_type_override(self):
        assert Customer.version_type() == "customers"

    def test_identity_field(self):
        assert User(5, "Ada").version_identity() == 5
        assert Customer("c-1", "Acme").version_identity() == "c-1"

    def test_missing_identity_is_none(self):
        class Anonymous(Versioned):
            pass

        assert Anonymous().version_identity() is None


class TestAttributes:
    def test_transient_fields_excluded(self):
        user = User(1, "Ada", session_token="secret")
        attrs = user.version_attributes()
        assert attrs == {"id": 1, "name": "Ada", "email": "", "tags": []}
        assert "session_token" not in attrs

    def test_nested_dataclasses_flattened(self):
        customer = Customer(
            "c-1",
            "Acme",
            address=Address("1 Main St", "Springfield"),
            previous=[Address("2 Old Rd", "Shelbyville")],
        )
        attrs = customer.version_attributes()
        assert attrs["address"] == {"street": "1 Main St", "city": "Springfield"}
        assert attrs["previous"] == [{"street": "2 Old Rd", "city": "Shelbyville"}]

    def test_attributes_are_serializable(self):
        customer = Customer("c-1", "Acme", address=Address("1 Main St", "Springfield"))
        assert deserialize(serialize(customer.version_attributes())) == customer.version_attributes()


class TestLoad:
    def test_load_overwrites_in_place(self):
        user = User(1, "Ada", tags=["x"])
        user.load_version_attributes({"id": 1, "name": "Ada Lovelace", "email": "a@b.c", "tags": []})
        assert user.name == "Ada Lovelace"
        assert user.email == "a@b.c"
        assert user.tags == []

    def test_transient_fields_survive(self):
        user = User(1, "Ada", session_token="keep-me")
        user.load_version_attributes({"id": 1, "name": "Other", "session_token": "ignored"})
        assert user.session_token == "keep-me"
        assert user.name == "Other"

    def test_unknown_and_missing_keys(self):
        user = User(1, "Ada", email="a@b.c")
        user.load_version_attributes({"name": "Bea", "added_later": True})
        assert user.name == "Bea"
        assert user.email == "a@b.c"
        assert not hasattr(user, "added_later")

    def test_nested_rebuilt(self):
        customer = Customer("c-1", "Acme")
        customer.load_version_attributes({
            "address": {"street": "1 Main St", "city": "Springfield"},
            "previous": [{"street": "2 Old Rd", "city": "Shelbyville"}],
        })
        assert customer.address == Address("1 Main St", "Springfield")
        assert customer.previous == [Address("2 Old Rd", "Shelbyville")]

    def test_optional_nested_none(self):
        customer = Customer("c-1", "Acme", address=Address("a", "b"))
        customer.load_version_attributes({"address": None})
        assert customer.address is None


class TestNonDataclass:
    def test_plain_class_must_override(self):
        class Plain(Versioned):
            id = 1

        with pytest.raises(NotImplementedError):
            Plain().version_attributes()
        with pytest.raises(NotImplementedError):
            Plain().load_version_attributes({})

    def test_override(self):
        class Row(Versioned):
            def __init__(self, id, data):
                self.id = id
                self.data = data

            def version_attributes(self):
                return dict(self.data)

            def load_version_attributes(self, attributes):
                self.data = dict(attributes)

        row = Row(9, {"a": 1})
        row.load_version_attributes({"a": 2})
        assert row.version_attributes() == {"a": 2}

    def test_legacy_record_is_not_versioned(self):
        assert not isinstance(LegacyRecord(1), Versioned)
