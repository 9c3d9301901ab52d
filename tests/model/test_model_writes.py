"""Tests for Model insert/update/delete/count against a recording driver."""

import pytest

from crudmodel import Model, UnknownFieldError
from crudmodel.driver import NOT_SET
from tests.helpers import AliasedOffices, Offices, RecordingDriver


@pytest.fixture
def model():
    return Offices(driver=RecordingDriver(count=2))


class TestInsert:

    def test_insert_filters_fields(self, model):
        assert model.insert({"name": "Dora", "office_id": 2, "bogus": 1}, "users") is True
        assert model.driver.calls == [("insert", "users", {"name": "Dora", "office_id": 2})]
        assert model.session.dropped_fields == ["bogus"]
        assert model.get_insert_id() == 42

    def test_insert_into_primary_table(self, model):
        model.insert({"name": "West", "city": "Bristol"})
        assert model.driver.named("insert")[0][1] == "offices"

    def test_insert_uses_real_table_name(self):
        model = AliasedOffices(driver=RecordingDriver())
        model.insert({"iso": "FR", "name": "France"}, "c")
        assert model.driver.named("insert")[0][1] == "countries"

    def test_nothing_to_insert(self, model):
        assert model.insert({}, "users") is False
        assert model.insert(None) is False
        assert model.insert({"bogus": 1}) is False
        assert model.driver.calls == []
        assert model.get_insert_id() is None

    def test_unknown_table(self, model):
        assert model.insert({"name": "x"}, "nowhere") is False

    def test_driver_failure(self, model):
        model.driver.fail = True
        assert model.insert({"name": "Dora"}, "users") is False
        assert model.get_insert_id() is None

    def test_strict(self):
        model = Offices(driver=RecordingDriver(), strict=True)
        with pytest.raises(UnknownFieldError):
            model.insert({"name": "Dora", "bogus": 1}, "users")


class TestUpdate:

    def test_update_by_primary_key(self, model):
        assert model.update({"city": "Paris", "bogus": 1}, 1) is True
        assert model.driver.calls == [
            ("where", "offices.id", 1, True),
            ("update", "offices", {"city": "Paris"}),
        ]
        assert model.get_affected_rows() == 1

    def test_update_with_conditions(self, model):
        model.update({"office_id": 3}, {"office_id": 1}, "users")
        assert model.driver.named("where") == [("where", "users.office_id", 1, True)]
        assert model.driver.named("update") == [("update", "users", {"office_id": 3})]

    def test_update_uses_real_table_name(self):
        model = AliasedOffices(driver=RecordingDriver())
        model.update({"city": "Paris"}, {"name": "HQ"}, "o")
        assert model.driver.named("where") == [("where", "offices.name", "HQ", True)]
        assert model.driver.named("update") == [("update", "offices", {"city": "Paris"})]

    def test_update_refuses_when_every_condition_is_dropped(self, model):
        assert model.update({"city": "Paris"}, {"bogus": 1}) is False
        assert model.driver.named("update") == []
        assert model.driver.named("reset") == [("reset",)]

    def test_missing_arguments(self, model):
        assert model.update({}, 1) is False
        assert model.update({"city": "Paris"}) is False
        assert model.update({"bogus": 1}, 1) is False
        assert model.driver.named("update") == []

    def test_driver_failure(self, model):
        model.driver.fail = True
        assert model.update({"city": "Paris"}, 1) is False
        assert model.get_affected_rows() is None


class TestDelete:

    def test_delete_by_primary_key(self, model):
        assert model.delete(3) is True
        assert model.driver.calls == [
            ("where", "offices.id", 3, True),
            ("delete", "offices", None),
        ]
        assert model.get_affected_rows() == 1

    def test_delete_with_limit(self, model):
        model.delete({"office_id": 1}, "users", limit=1)
        assert model.driver.named("delete") == [("delete", "users", 1)]

    def test_delete_several_keys(self, model):
        model.delete([1, 2])
        assert model.driver.named("where_in") == [("where_in", "offices.id", (1, 2), True)]

    def test_delete_requires_conditions(self, model):
        assert model.delete() is False
        assert model.delete({}) is False
        assert model.delete({"bogus": 1}) is False
        assert model.driver.named("delete") == []


class TestCount:

    def test_count(self, model):
        assert model.count({"country_iso": "UK"}) == 2
        assert model.driver.calls == [
            ("from", "offices", "offices"),
            ("where", "offices.country_iso", "UK", True),
            ("count_all_results",),
        ]

    def test_count_through_related_table(self, model):
        assert model.count({"iso": "UK"}) == 2
        assert model.driver.named("join") == [
            ("join", "countries", "offices.country_iso = countries.iso", "left", "countries"),
        ]

    def test_count_by_primary_key(self, model):
        model.count(3)
        assert model.driver.named("where") == [("where", "offices.id", 3, True)]

    def test_count_raw_condition(self, model):
        model.count("city IS NOT NULL")
        assert model.driver.named("where") == [("where", "city IS NOT NULL", NOT_SET, True)]

    def test_count_requires_conditions(self, model):
        assert model.count() is False
        assert model.count({}) is False

    def test_count_failure(self, model):
        model.driver.fail = True
        assert model.count({"city": "London"}) is False

    def test_count_all(self, model):
        assert model.count_all("users") == 2
        assert model.driver.calls == [("count_all", "users")]
        model.driver.fail = True
        assert model.count_all() is False


class TestMassAssignment:
    """Only declared columns reach the INSERT."""

    def test_unknown_columns_are_left_out(self):
        class Users(Model):
            def setup(self):
                self.declare("users", fields=["id", "name"])

        model = Users(driver=RecordingDriver())
        assert model.insert({"id": 1, "name": "x", "bogus": "y"}, "users") is True
        assert model.driver.named("insert") == [("insert", "users", {"id": 1, "name": "x"})]
