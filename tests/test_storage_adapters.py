"""Tests for log persistence adapters."""

from dataclasses import dataclass, field
from datetime import date

import pytest

from diet_tracker.adapters.json_file_log_repository import JsonFileLogRepository
from diet_tracker.adapters.supabase_log_repository import SupabaseLogRepository
from diet_tracker.services.store import LogStore, dump_log
from tests.conftest import make_item, make_log

DAY = date(2024, 5, 1)


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    select_rows: list[dict[str, object]] = field(default_factory=list)
    upsert_rows: list[dict[str, object]] | None = None
    last_payload: object | None = None
    last_on_conflict: str | None = None

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def upsert(self, payload, on_conflict: str = "") -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        self.last_on_conflict = on_conflict
        return self

    def execute(self) -> FakeResponse:
        if getattr(self, "_action", "select") == "upsert":
            rows = self.upsert_rows
            if rows is None:
                rows = [self.last_payload]
            return FakeResponse(data=rows)
        return FakeResponse(data=self.select_rows)


@dataclass
class FakeClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        return self.tables.setdefault(name, FakeTable(name=name))


def test_json_file_missing_file_is_empty(tmp_path) -> None:
    repository = JsonFileLogRepository(tmp_path / "logs.json")

    assert repository.load_all() == {}


def test_json_file_save_and_reload(tmp_path) -> None:
    path = tmp_path / "nested" / "logs.json"
    repository = JsonFileLogRepository(path)
    store = LogStore.load(repository)
    log = make_log(DAY, lunch=[make_item("a", name="米饭")])

    store.upsert(log)
    store.upsert(make_log(date(2024, 5, 2)))

    assert set(repository.load_all()) == {"2024-05-01", "2024-05-02"}
    assert "米饭" in path.read_text(encoding="utf-8")
    assert LogStore.load(repository).get(DAY) == log


def test_json_file_corrupt_content_degrades_store(tmp_path) -> None:
    path = tmp_path / "logs.json"
    path.write_text("{not json", encoding="utf-8")
    repository = JsonFileLogRepository(path)

    with pytest.raises(ValueError):
        repository.load_all()
    assert LogStore.load(repository).recent() == []


def test_json_file_moves_corrupt_file_aside_before_saving(tmp_path) -> None:
    path = tmp_path / "logs.json"
    path.write_text("{not json", encoding="utf-8")

    JsonFileLogRepository(path).save_log("2024-05-01", {"date": "2024-05-01"})

    corrupt = tmp_path / "logs.json.corrupt"
    assert corrupt.read_text(encoding="utf-8") == "{not json"
    assert JsonFileLogRepository(path).load_all() == {
        "2024-05-01": {"date": "2024-05-01"}
    }


def test_json_file_non_object_is_rejected(tmp_path) -> None:
    path = tmp_path / "logs.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ValueError):
        JsonFileLogRepository(path).load_all()


def test_supabase_load_all_maps_rows() -> None:
    client = FakeClient()
    payload = dump_log(make_log(DAY))
    client.table("daily_logs").select_rows = [
        {"day": "2024-05-01", "payload": payload},
        {"day": "2024-05-02", "payload": None},
    ]

    logs = SupabaseLogRepository(client).load_all()

    assert logs == {"2024-05-01": payload}


def test_supabase_save_log_upserts_by_day() -> None:
    client = FakeClient()
    repository = SupabaseLogRepository(client, table="logs")

    repository.save_log("2024-05-01", {"date": "2024-05-01"})

    table = client.table("logs")
    assert table.last_on_conflict == "day"
    assert table.last_payload["day"] == "2024-05-01"
    assert table.last_payload["payload"] == {"date": "2024-05-01"}


def test_supabase_save_without_data_raises() -> None:
    client = FakeClient()
    client.table("daily_logs").upsert_rows = []

    with pytest.raises(RuntimeError):
        SupabaseLogRepository(client).save_log("2024-05-01", {})
