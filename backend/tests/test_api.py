import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.config import settings
from app.core.constants import ADMIN_COOKIE_NAME
from app.core.validation import ReservationFields
from app.main import create_app
from app.models import Slot
from app.services import store


def _slot_ids(db, presence_id):
    return [s.id for s in db.query(Slot).filter(Slot.presence_id == presence_id).order_by(Slot.start_at)]


def _book(client, slot_id, **overrides):
    body = {"first_name": "Anne", "last_name": "Dupont", "phone": "0470", "quantity": 2, **overrides}
    return client.post(f"/slots/{slot_id}/reservations", json=body)


# --- Liveness ---


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.text == "ok"


# --- Public booking ---


def test_calendar_and_slot_listing(client, make_presence, future_day):
    make_presence(future_day, location="Gare")
    make_presence(future_day, "14:00", "14:30", location="Abbaye")

    cal = client.get("/").json()
    assert cal["selected_date"] == future_day.isoformat()
    assert cal["day_counts"] == {future_day.isoformat(): 6}
    assert list(cal["slots_by_location"]) == ["Abbaye", "Gare"]
    assert [s["time"] for s in cal["slots_by_location"]["Gare"]] == ["09:00", "09:15", "09:30", "09:45"]

    listing = client.get("/slots", params={"location": "gar"}).json()
    assert listing["count"] == 4


def test_bad_date_filter(client):
    resp = client.get("/slots", params={"date": "01/09/2024"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "validation_failed", "reason": "invalid_date", "field": "date"}


def test_booking_flow(client, db, make_presence, future_day):
    slot_id = _slot_ids(db, make_presence(future_day))[0]
    assert client.get(f"/slots/{slot_id}").json()["time"] == "09:00"

    resp = _book(client, slot_id, comment="2 caisses")
    assert resp.status_code == 201
    data = resp.json()
    token = data["token"]
    assert data["email_sent"] is False
    assert data["links"]["cancel"].endswith(f"/r/{token}/cancel")

    view = client.get(f"/r/{token}").json()
    assert view["can_modify"] is True
    assert view["comment"] == "2 caisses"

    assert client.get(f"/r/{token}/edit").status_code == 200
    edited = client.post(f"/r/{token}/edit", json={"first_name": "Anne", "last_name": "D", "phone": "1", "quantity": "5"})
    assert edited.status_code == 200
    assert edited.json()["reservation"]["quantity"] == 5

    assert client.post(f"/r/{token}/cancel").json()["ok"] is True
    assert client.get(f"/r/{token}").status_code == 404


def test_booking_errors(client, db, make_presence, future_day, past_day):
    slot_id = _slot_ids(db, make_presence(future_day))[0]
    past_slot_id = _slot_ids(db, make_presence(past_day))[0]

    resp = _book(client, slot_id, quantity="0")
    assert resp.status_code == 400
    assert resp.json()["reason"] == "invalid_quantity"
    assert _book(client, slot_id, phone="").json()["field"] == "phone"

    assert _book(client, past_slot_id).status_code == 404
    resp = _book(client, 99999)
    assert resp.status_code == 404
    assert resp.json() == {"error": "not_found", "kind": "slot"}


def test_started_reservation_is_locked(client, db, make_presence, past_day):
    slot_id = _slot_ids(db, make_presence(past_day))[0]
    fields = ReservationFields(first_name="Anne", last_name="Dupont", phone="0470", quantity=1)
    store.create_reservation(db, slot_id, fields, "old-token")

    assert client.get("/r/old-token").json()["can_modify"] is False
    for path in ("/r/old-token/edit", "/r/old-token/cancel"):
        assert client.get(path).status_code == 403
    resp = client.post("/r/old-token/cancel")
    assert resp.status_code == 403
    assert resp.json()["error"] == "mutation_window_closed"
    assert store.get_reservation_by_token(db, "old-token") is not None


# --- Admin ---


def test_admin_requires_login(client):
    for path in ("/admin", "/admin/presences", "/admin/reservations"):
        resp = client.get(path, follow_redirects=False)
        assert resp.status_code == 303
        assert resp.headers["location"] == "/admin/login"
    assert client.get("/admin/login").json()["authenticated"] is False


def test_admin_login_and_logout(client):
    resp = client.post("/admin/login", json={"password": "wrong"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "invalid_password"

    assert client.post("/admin/login", json={"password": settings.admin_password}).status_code == 200
    assert client.get("/admin/login").json()["authenticated"] is True
    assert client.get("/admin", follow_redirects=False).status_code == 200

    resp = client.post("/admin/logout", follow_redirects=False)
    assert resp.status_code == 303
    assert ADMIN_COOKIE_NAME in resp.headers["set-cookie"]
    client.cookies.clear()
    assert client.get("/admin", follow_redirects=False).status_code == 303


def test_admin_presence_lifecycle(admin_client, future_day):
    resp = admin_client.post(
        "/admin/presences",
        json={"location": "Gare", "date": future_day.isoformat(), "start_time": "09:00", "end_time": "10:00"},
    )
    assert resp.status_code == 201
    presence_id = resp.json()["presence"]["id"]

    slots = admin_client.get("/slots", params={"date": future_day.isoformat()}).json()["slots"]
    token = _book(admin_client, slots[0]["slot_id"]).json()["token"]

    edit = {"location": "Gare", "date": future_day.isoformat(), "start_time": "10:00", "end_time": "11:00"}
    resp = admin_client.post(f"/admin/presences/{presence_id}/edit", json=edit)
    assert resp.status_code == 409
    assert resp.json()["reservations_count"] == 1
    assert admin_client.get(f"/r/{token}").status_code == 200

    resp = admin_client.post(f"/admin/presences/{presence_id}/edit", json={**edit, "confirm_impact": True})
    assert resp.status_code == 200
    assert resp.json()["presence"]["reservations_deleted"] == 1
    assert admin_client.get(f"/r/{token}").status_code == 404
    assert [s["time"] for s in admin_client.get("/slots").json()["slots"]][0] == "10:00"

    assert admin_client.get(f"/admin/presences/{presence_id}/delete").json()["reservations_count"] == 0
    assert admin_client.post(f"/admin/presences/{presence_id}/delete").status_code == 200
    assert admin_client.get(f"/admin/presences/{presence_id}").status_code == 404


def test_admin_presence_delete_gate(admin_client, db, make_presence, future_day):
    presence_id = make_presence(future_day)
    _book(admin_client, _slot_ids(db, presence_id)[0])

    resp = admin_client.post(f"/admin/presences/{presence_id}/delete")
    assert resp.status_code == 409
    resp = admin_client.post(f"/admin/presences/{presence_id}/delete", json={"confirm_impact": True})
    assert resp.json()["deleted"]["reservations_deleted"] == 1


def test_admin_presence_validation(admin_client, future_day):
    resp = admin_client.post(
        "/admin/presences",
        json={"location": "Gare", "date": future_day.isoformat(), "start_time": "10:00", "end_time": "09:00"},
    )
    assert resp.status_code == 400
    assert resp.json()["reason"] == "end_not_after_start"


def test_admin_reservations_list_and_delete(admin_client, db, make_presence, future_day, past_day):
    old_slot = _slot_ids(db, make_presence(past_day, location="Gare"))[0]
    store.create_reservation(db, old_slot, ReservationFields("Old", "Timer", "1", 1), "past-token")
    _book(admin_client, _slot_ids(db, make_presence(future_day, location="Marché"))[0])

    listing = admin_client.get("/admin/reservations").json()
    assert [r["location"] for r in listing["reservations"]] == ["Gare", "Marché"]
    assert listing["truncated"] is False
    filtered = admin_client.get("/admin/reservations", params={"location": "gare"}).json()
    assert [r["token"] for r in filtered["reservations"]] == ["past-token"]

    resp = admin_client.post("/admin/reservations/delete", json={"token": "past-token"})
    assert resp.status_code == 200
    assert store.get_reservation_by_token(db, "past-token") is None
    assert admin_client.post("/admin/reservations/delete", json={"token": "past-token"}).status_code == 404


def test_dashboard(admin_client, make_presence, future_day):
    make_presence(future_day)
    data = admin_client.get("/admin").json()
    assert data["presences"][0]["slots_count"] == 4


def test_dashboard_degrades_when_storage_fails(admin_client, monkeypatch):
    def down(db):
        raise OperationalError("SELECT", {}, Exception("could not connect to server"))

    monkeypatch.setattr(store, "list_presences_with_counts", down)
    resp = admin_client.get("/admin")
    assert resp.status_code == 503
    assert "text/html" in resp.headers["content-type"]
    assert 'href="/healthz"' in resp.text
    assert admin_client.get("/healthz").status_code == 200


@pytest.mark.parametrize("quantity", [True, "99999999999999999999", 2.5])
def test_booking_rejects_bad_quantity_types(client, db, make_presence, future_day, quantity):
    slot_id = _slot_ids(db, make_presence(future_day))[0]
    resp = _book(client, slot_id, quantity=quantity)
    assert resp.status_code == 400
    assert resp.json()["reason"] == "invalid_quantity"
    assert store.list_reservations(db) == []


def test_booking_rejects_overlong_name(client, db, make_presence, future_day):
    slot_id = _slot_ids(db, make_presence(future_day))[0]
    resp = _book(client, slot_id, last_name="x" * 500)
    assert resp.status_code == 400
    assert resp.json() == {"error": "validation_failed", "reason": "too_long", "field": "last_name"}


def test_edit_rejects_boolean_quantity(client, db, make_presence, future_day):
    token = _book(client, _slot_ids(db, make_presence(future_day))[0]).json()["token"]
    resp = client.post(f"/r/{token}/edit", json={"first_name": "A", "last_name": "B", "phone": "1", "quantity": True})
    assert resp.status_code == 400
    assert store.get_reservation_by_token(db, token)["quantity"] == 2


def test_admin_presence_rejects_time_with_offset(admin_client, future_day):
    resp = admin_client.post(
        "/admin/presences",
        json={"location": "Gare", "date": future_day.isoformat(), "start_time": "09:00+01:00", "end_time": "10:00"},
    )
    assert resp.status_code == 400
    assert resp.json() == {"error": "validation_failed", "reason": "invalid_time", "field": "start_time"}


def test_cors_origins_come_from_settings(database, monkeypatch):
    monkeypatch.setattr(settings, "cors_origins", "https://stand.example, ")
    with TestClient(create_app(database=database)) as c:
        resp = c.options(
            "/slots",
            headers={"Origin": "https://stand.example", "Access-Control-Request-Method": "GET"},
        )
    assert resp.headers["access-control-allow-origin"] == "https://stand.example"
