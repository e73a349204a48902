from fastapi.testclient import TestClient
from jose import jwt

from conftest import auth_headers, identity_token
from instrument_scheduler.main import app
from instrument_scheduler.repository import ReservationRepository

DATE = "2026-03-02"


def post_reservation(client, user, start, end, date=DATE):
    return client.post(
        "/api/reservations",
        json={"date": date, "startTime": start, "endTime": end},
        headers=auth_headers(user),
    )


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert "message" in r.json()


def test_reservations_require_a_session(client):
    r = client.get("/api/reservations", params={"date": DATE})
    assert r.status_code == 401
    assert r.headers["www-authenticate"] == "Bearer"


def test_garbage_token_is_rejected(client):
    r = client.get("/api/reservations", params={"date": DATE}, headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


def test_login_creates_pending_user(client):
    token = identity_token("ext-42", email="dana@lab.org", first_name="Dana", last_name="Lee")
    r = client.post("/api/auth/login", json={"id_token": token})
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["id"] == "ext-42"
    assert body["user"]["isApproved"] is False

    me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["firstName"] == "Dana"


def test_login_with_forged_identity_token(client):
    forged = jwt.encode({"sub": "ext-1"}, "not-the-shared-secret", algorithm="HS256")
    r = client.post("/api/auth/login", json={"id_token": forged})
    assert r.status_code == 401


def test_create_reservation(client, make_user):
    alice = make_user("alice", first_name="Alice", last_name="Kim")
    r = post_reservation(client, alice, "09:00", "09:20")
    assert r.status_code == 200
    body = r.json()
    assert body["userId"] == "alice"
    assert body["userName"] == "Alice Kim"
    assert body["date"] == DATE
    assert (body["startTime"], body["endTime"]) == ("09:00", "09:20")
    assert body["id"] and body["createdAt"]


def test_unapproved_user_cannot_reserve(client, make_user):
    pending = make_user("pending", approved=False)
    r = post_reservation(client, pending, "09:00", "09:20")
    assert r.status_code == 403
    assert r.json()["message"] == "User not approved for reservations"


def test_unapproved_user_is_refused_before_times_are_read(client, make_user):
    pending = make_user("pending", approved=False)
    r = post_reservation(client, pending, "23:50", "24:10")
    assert r.status_code == 403
    assert r.json()["message"] == "User not approved for reservations"

    selection = client.post(
        "/api/reservations/selection",
        json={"date": DATE, "slots": ["24:00"]},
        headers=auth_headers(pending),
    )
    assert selection.status_code == 403


def test_time_outside_the_day_names_the_field(client, make_user):
    alice = make_user("alice")
    r = post_reservation(client, alice, "23:50", "24:10")
    assert r.status_code == 400
    assert "endTime" in r.json()["errors"]

    r = post_reservation(client, alice, "25:00", "25:10")
    assert r.status_code == 400
    assert "startTime" in r.json()["errors"]


def test_selection_label_with_trailing_newline(client, make_user):
    alice = make_user("alice")
    r = client.post(
        "/api/reservations/selection",
        json={"date": DATE, "slots": ["10:00\n"]},
        headers=auth_headers(alice),
    )
    assert r.status_code == 400
    assert "slots" in r.json()["errors"]


def test_malformed_body_returns_field_errors(client, make_user):
    alice = make_user("alice")
    r = client.post(
        "/api/reservations",
        json={"date": "03/02/2026", "startTime": "9:00", "endTime": "09:20"},
        headers=auth_headers(alice),
    )
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Invalid reservation data"
    assert "date" in body["errors"]
    assert "startTime" in body["errors"]


def test_out_of_policy_ranges_are_rejected(client, make_user):
    alice = make_user("alice")
    for start, end in [("09:00", "09:40"), ("09:05", "09:15"), ("09:20", "09:20"), ("09:30", "09:00")]:
        r = post_reservation(client, alice, start, end)
        assert r.status_code == 400, (start, end)
        assert "message" in r.json()


def test_last_slot_of_the_day(client, make_user):
    alice = make_user("alice")
    r = post_reservation(client, alice, "23:50", "24:00")
    assert r.status_code == 200
    assert r.json()["endTime"] == "24:00"


def test_two_users_compete_for_the_morning(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")

    assert post_reservation(client, alice, "09:00", "09:20").status_code == 200

    clash = post_reservation(client, bob, "09:10", "09:30")
    assert clash.status_code == 400
    assert clash.json() == {"message": "Time slot already reserved"}

    assert post_reservation(client, bob, "09:20", "09:40").status_code == 200


def test_boundary_touching_reservations(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    assert post_reservation(client, alice, "10:00", "10:30").status_code == 200
    assert post_reservation(client, bob, "10:20", "10:40").status_code == 400
    assert post_reservation(client, bob, "10:30", "10:50").status_code == 200


def test_same_time_on_another_day_is_free(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    assert post_reservation(client, alice, "09:00", "09:30").status_code == 200
    assert post_reservation(client, bob, "09:00", "09:30", date="2026-03-03").status_code == 200


def test_list_reservations_for_a_day(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    post_reservation(client, bob, "14:00", "14:10")
    post_reservation(client, alice, "09:00", "09:10")
    post_reservation(client, alice, "09:00", "09:10", date="2026-03-03")

    r = client.get("/api/reservations", params={"date": DATE}, headers=auth_headers(bob))
    assert r.status_code == 200
    assert [(x["userId"], x["startTime"]) for x in r.json()] == [("alice", "09:00"), ("bob", "14:00")]


def test_list_reservations_requires_date(client, make_user):
    alice = make_user("alice")
    r = client.get("/api/reservations", headers=auth_headers(alice))
    assert r.status_code == 400
    assert "date" in r.json()["errors"]


def test_my_reservations(client, make_user):
    alice, bob = make_user("alice"), make_user("bob")
    post_reservation(client, alice, "09:00", "09:10")
    post_reservation(client, bob, "10:00", "10:10")
    post_reservation(client, alice, "08:00", "08:10", date="2026-03-05")

    r = client.get("/api/reservations/mine", headers=auth_headers(alice))
    assert [(x["date"], x["startTime"]) for x in r.json()] == [("2026-03-05", "08:00"), (DATE, "09:00")]


def test_reserve_from_selection(client, make_user):
    alice = make_user("alice")
    r = client.post(
        "/api/reservations/selection",
        json={"date": DATE, "slots": ["10:10", "10:00", "10:20"]},
        headers=auth_headers(alice),
    )
    assert r.status_code == 200
    assert (r.json()["startTime"], r.json()["endTime"]) == ("10:00", "10:30")


def test_selection_with_gap_or_too_many_slots(client, make_user):
    alice = make_user("alice")
    gap = client.post(
        "/api/reservations/selection",
        json={"date": DATE, "slots": ["10:00", "10:20"]},
        headers=auth_headers(alice),
    )
    assert gap.status_code == 400
    assert gap.json()["message"] == "Only consecutive time slots can be selected"

    too_many = client.post(
        "/api/reservations/selection",
        json={"date": DATE, "slots": ["10:00", "10:10", "10:20", "10:30"]},
        headers=auth_headers(alice),
    )
    assert too_many.status_code == 400


def test_day_grid_marks_taken_slots(client, make_user):
    alice = make_user("alice", first_name="Alice", last_name="Kim")
    reservation = post_reservation(client, alice, "10:00", "10:30").json()

    r = client.get("/api/slots", params={"date": DATE}, headers=auth_headers(alice))
    assert r.status_code == 200
    grid = r.json()
    assert len(grid) == 144
    taken = [slot["time"] for slot in grid if slot["reservationId"] == reservation["id"]]
    assert taken == ["10:00", "10:10", "10:20"]
    assert grid[60]["userName"] == "Alice Kim"
    assert grid[63]["reservationId"] is None


def test_owner_cancels(client, make_user):
    alice = make_user("alice")
    reservation = post_reservation(client, alice, "09:00", "09:10").json()

    r = client.delete(f"/api/reservations/{reservation['id']}", headers=auth_headers(alice))
    assert r.status_code == 200
    assert r.json() == {"success": True}

    again = client.delete(f"/api/reservations/{reservation['id']}", headers=auth_headers(alice))
    assert again.status_code == 404


def test_stranger_cannot_cancel(client, make_user):
    alice, mallory = make_user("alice"), make_user("mallory")
    reservation = post_reservation(client, alice, "09:00", "09:10").json()

    r = client.delete(f"/api/reservations/{reservation['id']}", headers=auth_headers(mallory))
    assert r.status_code == 403


def test_admin_cancels_anyones_reservation(client, make_user):
    alice = make_user("alice")
    admin = make_user("root", admin=True, approved=False)
    reservation = post_reservation(client, alice, "09:00", "09:10").json()

    r = client.delete(f"/api/reservations/{reservation['id']}", headers=auth_headers(admin))
    assert r.status_code == 200


def test_store_failure_is_a_generic_500(client, make_user, monkeypatch):
    alice = make_user("alice")

    def broken(self, day):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(ReservationRepository, "by_date", broken)
    quiet_client = TestClient(app, raise_server_exceptions=False)
    r = quiet_client.get("/api/reservations", params={"date": DATE}, headers=auth_headers(alice))
    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error"}
