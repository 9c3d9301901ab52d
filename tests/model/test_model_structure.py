"""Tests for table declaration, structure caching and model configuration."""

import json

import pytest

from crudmodel import FileCache, MemoryCache, Model, Relationship, SqlDriver, TableDescriptor
from tests.helpers import SCHEMA, AliasedOffices, Offices, RecordingDriver


class TestDeclare:

    def test_fields_are_read_from_the_database(self):
        model = Offices(driver=RecordingDriver())
        assert model.driver.list_fields_calls == ["offices", "countries", "users"]
        assert model.tables["offices"].fields == tuple(SCHEMA["offices"])
        assert model.tables["offices"].primary_key == "id"
        assert model.tables["countries"].primary_key == "iso"

    def test_declared_fields_skip_the_database(self):
        model = AliasedOffices(driver=RecordingDriver())
        assert model.driver.list_fields_calls == []
        assert set(model.tables) == {"o", "c"}
        assert model.tables["o"].name == "offices"

    def test_introspected_and_declared_tables_are_equal(self):
        model = Offices(driver=RecordingDriver())
        assert model.tables["countries"] == TableDescriptor(
            name="countries", fields=("iso", "name"), primary_key="iso",
        )

    def test_first_table_is_primary(self):
        assert Offices(driver=RecordingDriver()).session.primary_table == "offices"
        assert AliasedOffices(driver=RecordingDriver()).session.primary_table == "o"

    def test_table_without_columns(self):
        class Broken(Model):
            def setup(self):
                self.declare("nowhere")

        with pytest.raises(ValueError, match="at least one field"):
            Broken(driver=RecordingDriver())

    def test_relationships(self):
        model = Offices(driver=RecordingDriver())
        assert model.relate("offices") == {"countries": Relationship("", "")}
        model.relate("offices", "users", ("id", "office_id"))
        assert model.relate("offices")["users"] == ("id", "office_id")


class TestBeginQuery:

    def test_reset(self):
        model = Offices(driver=RecordingDriver())
        model.get({"iso": "UK"})
        session = model.begin_query("users")
        assert session is model.session
        assert session.primary_table == "users"
        assert session.tables_joined == []

    def test_keep_state(self):
        model = Offices(driver=RecordingDriver())
        model.get({"iso": "UK"})
        model.begin_query("users", reset=False)
        assert model.session.primary_table == "users"
        assert model.session.tables_joined == ["offices", "countries"]


class TestStructureCache:

    def test_memory_cache_is_reused(self):
        cache = MemoryCache()
        first = Offices(driver=RecordingDriver(), cache=cache)
        assert len(first.driver.list_fields_calls) == 3
        second = Offices(driver=RecordingDriver(), cache=cache)
        assert second.driver.list_fields_calls == []
        assert second.tables == first.tables
        assert cache.get("table_structure/offices") == SCHEMA

    def test_cache_key(self):
        cache = MemoryCache()
        Offices(driver=RecordingDriver(), cache=cache, cache_key="hr")
        assert cache.get("table_structure/offices") is None
        assert set(cache.get("table_structure/hr")) == set(SCHEMA)

    def test_file_cache(self, tmp_path):
        Offices(driver=RecordingDriver(), cache=FileCache(str(tmp_path)))
        path = tmp_path / "table_structure" / "offices.json"
        assert json.loads(path.read_text()) == SCHEMA
        model = Offices(driver=RecordingDriver(), cache=FileCache(str(tmp_path)))
        assert model.driver.list_fields_calls == []


class TestConfiguration:

    def test_class_keywords(self):
        class Accounts(Model, connection_name="accounts", strict=True):
            pass

        class Archive(Accounts):
            pass

        model = Archive()
        assert model.strict is True
        assert model.builder.strict is True
        assert isinstance(model.driver, SqlDriver)
        assert model.driver.connection_name == "accounts"

    def test_instance_overrides(self):
        class Accounts(Model, connection_name="accounts", strict=True):
            pass

        model = Accounts(connection_name="other", strict=False)
        assert model.strict is False
        assert model.driver.connection_name == "other"

    def test_defaults(self):
        model = Model()
        assert model.strict is False
        assert model.driver.connection_name == "default"
        assert model.cache_key == "model"
