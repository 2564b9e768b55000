"""Unit tests for the Session Store."""

from __future__ import annotations

from runtime.session_store import SessionStore


class TestSessionStore:
    def test_starts_empty(self) -> None:
        store = SessionStore()
        assert store.get_defaults() == {}
        assert len(store) == 0

    def test_initial_values(self) -> None:
        store = SessionStore({"scheme": "App"})
        assert store.get_defaults() == {"scheme": "App"}
        assert "scheme" in store

    def test_new_values_win(self) -> None:
        store = SessionStore()
        store.set_defaults({"scheme": "App", "configuration": "Debug"})
        store.set_defaults({"configuration": "Release"})
        assert store.get_defaults() == {"scheme": "App", "configuration": "Release"}

    def test_none_removes_key(self) -> None:
        store = SessionStore({"scheme": "App", "simulator_id": "UUID-1"})
        store.set_defaults({"simulator_id": None})
        assert store.get_defaults() == {"scheme": "App"}

    def test_set_is_idempotent(self) -> None:
        store = SessionStore()
        store.set_defaults({"simulator_id": "UUID-1"})
        once = store.get_defaults()
        store.set_defaults({"simulator_id": "UUID-1"})
        assert store.get_defaults() == once

    def test_snapshot_is_a_copy(self) -> None:
        store = SessionStore({"extra_args": ["-quiet"]})
        snapshot = store.get_defaults()
        snapshot["extra_args"].append("-verbose")
        snapshot["scheme"] = "Other"
        assert store.get_defaults() == {"extra_args": ["-quiet"]}

    def test_stored_value_is_a_copy(self) -> None:
        env = {"A": "1"}
        store = SessionStore({"env": env})
        env["B"] = "2"
        assert store.get("env") == {"A": "1"}

    def test_clear_all(self) -> None:
        store = SessionStore({"scheme": "App", "device_id": "D1"})
        store.clear()
        assert store.get_defaults() == {}

    def test_clear_selected_keys(self) -> None:
        store = SessionStore({"scheme": "App", "device_id": "D1"})
        store.clear(["device_id", "not_there"])
        assert store.get_defaults() == {"scheme": "App"}

    def test_stores_are_isolated(self) -> None:
        a, b = SessionStore(), SessionStore()
        a.set_defaults({"scheme": "App"})
        assert b.get_defaults() == {}
