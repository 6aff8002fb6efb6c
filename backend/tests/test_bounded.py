import threading

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from app.core.bounded import run_bounded_reads
from app.core.errors import StorageUnavailable
from app.services import admin_service, store


def test_results_by_name(database):
    results = run_bounded_reads(
        database,
        {"one": lambda db: db.execute(text("SELECT 1")).scalar(), "presences": store.list_presences},
        timeout=5,
    )
    assert results == {"one": 1, "presences": []}


def test_no_reads():
    assert run_bounded_reads(None, {}, timeout=1) == {}


def test_database_error_becomes_storage_unavailable(database):
    def broken(db):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    with pytest.raises(StorageUnavailable) as exc:
        run_bounded_reads(database, {"presences": broken}, timeout=5)
    assert "presences" in str(exc.value)


def test_slow_read_becomes_storage_unavailable(database):
    release = threading.Event()

    def stuck(db):
        release.wait(5)
        return "late"

    try:
        with pytest.raises(StorageUnavailable) as exc:
            run_bounded_reads(database, {"fast": lambda db: 1, "stuck": stuck}, timeout=0.1)
        assert "stuck" in str(exc.value)
    finally:
        release.set()


def test_other_errors_propagate(database):
    def bug(db):
        raise ValueError("not a storage problem")

    with pytest.raises(ValueError):
        run_bounded_reads(database, {"bug": bug}, timeout=5)


def test_dashboard_counts_and_today(database, db, make_presence, future_day):
    presence_id = make_presence(future_day)
    data = admin_service.load_dashboard(database, today=future_day, timeout=5)
    assert data["today"] == future_day
    assert [p["id"] for p in data["presences"]] == [presence_id]
    assert data["presences"][0]["slots_count"] == 4
    assert data["today_reservations"] == []


def test_reservation_list_marks_truncation(database, monkeypatch):
    monkeypatch.setattr(admin_service, "RESERVATIONS_LIST_LIMIT", 0)
    data = admin_service.load_reservations(database, location_filter="gare", timeout=5)
    assert data["query"] == {"date": None, "location": "gare"}
    assert data["truncated"] is True
