"""Tests for the local key/value store."""

import json

from home_budget.services.storage import LocalStore, MemoryStore
from home_budget.services.storage.local import MAX_INCOME_SOURCES


class TestLocalStore:
    """Tests for the JSON-file store."""

    def test_persists_across_instances(self, tmp_path):
        """A value written by one store is read by the next."""
        path = tmp_path / "nested" / "store.json"
        LocalStore(path).set_selected_budget_year_id("by-1")

        assert LocalStore(path).get_selected_budget_year_id() == "by-1"
        assert json.loads(path.read_text(encoding="utf-8")) == {
            "selected_budget_year_id": "by-1",
        }

    def test_no_temp_files_left(self, tmp_path):
        """Writes replace the file and leave nothing behind."""
        path = tmp_path / "store.json"
        store = LocalStore(path)
        store.set("a", 1)
        store.set("b", 2)
        assert [p.name for p in tmp_path.iterdir()] == ["store.json"]

    def test_corrupt_file_is_reset(self, tmp_path):
        """Unparseable JSON is treated as an empty store."""
        path = tmp_path / "store.json"
        path.write_text("{not json", encoding="utf-8")
        store = LocalStore(path)

        assert store.get("anything") is None
        store.set_user_id("u1")
        assert json.loads(path.read_text(encoding="utf-8")) == {"user_id": "u1"}

    def test_non_object_file_is_reset(self, tmp_path):
        """A JSON list is not a store."""
        path = tmp_path / "store.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert LocalStore(path).get_income_sources() == []

    def test_default_path_from_settings(self, tmp_path):
        """Without a path the configured one is used."""
        assert LocalStore().path == tmp_path / "store.json"

    def test_clearing_keys(self, tmp_path):
        """None removes the selected year and the token."""
        store = LocalStore(tmp_path / "store.json")
        store.set_selected_budget_year_id("by-1")
        store.set_auth_token("t")
        store.set_selected_budget_year_id(None)
        store.set_auth_token(None)

        assert LocalStore(tmp_path / "store.json").get("auth_token") is None
        assert store.get_selected_budget_year_id() is None


class TestIncomeSources:
    """Tests for the income source suggestion cache."""

    def test_newest_first_case_insensitive(self):
        """Re-adding a source moves it to the front once."""
        store = MemoryStore()
        store.add_income_sources("Salary", "Freelance")
        sources = store.add_income_sources("salary ", "", None)
        assert sources == ["salary", "Freelance"]

    def test_capped(self):
        """The list never grows past the cap."""
        store = MemoryStore()
        store.add_income_sources(*[f"source {i}" for i in range(MAX_INCOME_SOURCES + 10)])
        sources = store.get_income_sources()
        assert len(sources) == MAX_INCOME_SOURCES
        assert sources[0] == f"source {MAX_INCOME_SOURCES + 9}"

    def test_memory_store_initial(self):
        """The memory store can be seeded."""
        store = MemoryStore({"income_sources": ["Salary"]})
        assert store.get_income_sources() == ["Salary"]
        store.delete("income_sources")
        assert store.get_income_sources() == []
