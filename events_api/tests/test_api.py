"""
Test API endpoints.
"""
from dataclasses import replace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from events_api.core.security import create_access_token
from events_api.main import create_app
from events_api.models.registrations import Registration
from events_api.tests.helpers import TEST_PASSWORD, in_days


class TestRoot:

    def test_root(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert "running" in response.text


class TestAuthEndpoints:
    """Test /auth endpoints."""

    def test_register(self, client: TestClient):
        response = client.post(
            "/auth/register",
            json={"name": "Alice", "email": "Alice@X.com", "password": "secret123"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User registered successfully"
        assert data["user"]["email"] == "alice@x.com"
        assert "password" not in data["user"]

    def test_register_duplicate_email(self, client: TestClient):
        payload = {"name": "Alice", "email": "alice@x.com", "password": "secret123"}
        assert client.post("/auth/register", json=payload).status_code == 201

        response = client.post("/auth/register", json=payload)

        assert response.status_code == 409
        assert response.json() == {"error": "Email already exists"}

    def test_register_validation(self, client: TestClient):
        response = client.post("/auth/register", json={"name": "Alice", "email": "alice", "password": "123"})

        assert response.status_code == 400
        assert "error" in response.json()

    def test_login(self, client: TestClient, make_user):
        user = make_user()

        response = client.post("/auth/login", json={"email": "alice@x.com", "password": TEST_PASSWORD})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Login successful"
        assert data["token"]
        assert data["user"] == {"id": user.id, "name": "Alice", "email": "alice@x.com"}

    def test_login_wrong_password(self, client: TestClient, make_user):
        make_user()

        response = client.post("/auth/login", json={"email": "alice@x.com", "password": "nope-nope"})

        assert response.status_code == 401
        assert response.json() == {"error": "Incorrect password"}

    def test_login_unknown_email(self, client: TestClient):
        response = client.post("/auth/login", json={"email": "ghost@x.com", "password": "secret123"})

        assert response.status_code == 404

    def test_login_empty_password(self, client: TestClient, make_user):
        make_user()

        response = client.post("/auth/login", json={"email": "alice@x.com", "password": ""})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid input")

    def test_login_token_opens_protected_routes(self, client: TestClient, make_user, make_event):
        make_user()
        event = make_event()
        token = client.post("/auth/login", json={"email": "alice@x.com", "password": TEST_PASSWORD}).json()["token"]

        response = client.post(f"/events/{event.id}/register", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 201


class TestEventEndpoints:
    """Test event-related API endpoints."""

    def test_create_event(self, client: TestClient, make_user, auth_headers):
        user = make_user()
        response = client.post(
            "/events/createEvent",
            json={"title": "API Test Event", "datetime": in_days(3).isoformat(), "location": "Room 1", "capacity": 100},
            headers=auth_headers(user.id),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "Event created successfully"
        assert data["event"]["title"] == "API Test Event"
        assert data["event"]["capacity"] == 100
        assert "id" in data["event"]

    def test_create_event_requires_token(self, client: TestClient):
        response = client.post(
            "/events/createEvent",
            json={"title": "T", "datetime": in_days(3).isoformat(), "location": "L", "capacity": 1},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Token required"}

    def test_create_event_invalid_token(self, client: TestClient):
        response = client.post(
            "/events/createEvent",
            json={"title": "T", "datetime": in_days(3).isoformat(), "location": "L", "capacity": 1},
            headers={"Authorization": "Bearer forged.token.value"},
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Invalid token"}

    @pytest.mark.parametrize(
        "header, status, error",
        [("Bearer", 401, "Token required"), ("Basic dXNlcjpwYXNz", 403, "Invalid token"), ("Token abc", 403, "Invalid token")],
    )
    def test_create_event_authorization_header_forms(self, client: TestClient, header, status, error):
        response = client.post(
            "/events/createEvent",
            json={"title": "T", "datetime": in_days(3).isoformat(), "location": "L", "capacity": 1},
            headers={"Authorization": header},
        )

        assert response.status_code == status
        assert response.json() == {"error": error}

    def test_token_accepted_under_any_scheme(self, client: TestClient, make_user, make_event, settings):
        user = make_user()
        event = make_event()
        token = create_access_token(user.id, secret=settings.jwt_secret)

        response = client.post(f"/events/{event.id}/register", headers={"Authorization": f"JWT {token}"})

        assert response.status_code == 201

    def test_create_event_validation(self, client: TestClient, make_user, auth_headers):
        user = make_user()
        response = client.post(
            "/events/createEvent",
            json={"title": "Too big", "datetime": in_days(3).isoformat(), "location": "L", "capacity": 1001},
            headers=auth_headers(user.id),
        )

        assert response.status_code == 400
        assert "error" in response.json()

    def test_upcoming(self, client: TestClient, make_event):
        make_event("Later", when=in_days(10), location="B")
        make_event("Sooner", when=in_days(1), location="A")
        make_event("Gone", when=in_days(-1), location="A")

        response = client.get("/events/upcoming")

        assert response.status_code == 200
        assert [e["title"] for e in response.json()["events"]] == ["Sooner", "Later"]

    def test_event_details(self, client: TestClient, db_session: Session, make_event, make_user):
        event = make_event()
        user = make_user()
        db_session.add(Registration(event_id=event.id, user_id=user.id))
        db_session.commit()

        response = client.get(f"/events/{event.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["event"]["id"] == event.id
        assert data["registrations"] == [{"id": user.id, "name": "Alice", "email": "alice@x.com"}]

    def test_event_details_not_found(self, client: TestClient):
        response = client.get("/events/99999")

        assert response.status_code == 404
        assert response.json() == {"error": "Event not found"}

    def test_event_details_bad_id(self, client: TestClient):
        response = client.get("/events/abc")

        assert response.status_code == 400

    def test_event_stats(self, client: TestClient, db_session: Session, make_event, make_user):
        event = make_event(capacity=10)
        for i in range(4):
            user = make_user(name=f"User {i}", email=f"user{i}@x.com")
            db_session.add(Registration(event_id=event.id, user_id=user.id))
        db_session.commit()

        response = client.get(f"/events/{event.id}/stats")

        assert response.status_code == 200
        stats = response.json()["stats"]
        assert stats["total_registrations"] == 4
        assert stats["remaining_capacity"] == 6
        assert stats["percent_filled"] == "40.00%"

    def test_event_stats_not_found(self, client: TestClient):
        assert client.get("/events/99999/stats").status_code == 404


class TestRegistrationEndpoints:
    """Test registering for and cancelling events."""

    def test_register_for_event(self, client: TestClient, make_event, make_user, auth_headers):
        event = make_event(title="Bookable Event")
        user = make_user()

        response = client.post(f"/events/{event.id}/register", headers=auth_headers(user.id))

        assert response.status_code == 201
        data = response.json()
        assert data["message"] == "User registered successfully"
        assert data["registration"]["event"]["id"] == event.id
        assert data["registration"]["user"]["id"] == user.id

    def test_register_requires_token(self, client: TestClient, make_event):
        event = make_event()
        assert client.post(f"/events/{event.id}/register").status_code == 401

    def test_register_twice(self, client: TestClient, make_event, make_user, auth_headers):
        event = make_event()
        headers = auth_headers(make_user().id)
        assert client.post(f"/events/{event.id}/register", headers=headers).status_code == 201

        response = client.post(f"/events/{event.id}/register", headers=headers)

        assert response.status_code == 409
        assert response.json() == {"error": "User already registered"}

    def test_register_full_event(self, client: TestClient, make_event, make_user, auth_headers):
        event = make_event(capacity=1)
        first = make_user()
        second = make_user(name="Bob", email="bob@x.com")
        assert client.post(f"/events/{event.id}/register", headers=auth_headers(first.id)).status_code == 201

        response = client.post(f"/events/{event.id}/register", headers=auth_headers(second.id))

        assert response.status_code == 400
        assert response.json() == {"error": "Event is full"}

    def test_register_past_event(self, client: TestClient, make_event, make_user, auth_headers):
        event = make_event(when=in_days(-1))

        response = client.post(f"/events/{event.id}/register", headers=auth_headers(make_user().id))

        assert response.status_code == 400
        assert response.json() == {"error": "Cannot register for past events"}

    def test_register_missing_event(self, client: TestClient, make_user, auth_headers):
        response = client.post("/events/99999/register", headers=auth_headers(make_user().id))

        assert response.status_code == 404

    def test_cancel(self, client: TestClient, make_event, make_user, auth_headers):
        event = make_event()
        user = make_user()
        headers = auth_headers(user.id)
        client.post(f"/events/{event.id}/register", headers=headers)

        response = client.delete(f"/events/{event.id}/cancel/{user.id}", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Registration cancelled successfully"
        assert data["registration"]["user"]["id"] == user.id

        stats = client.get(f"/events/{event.id}/stats").json()["stats"]
        assert stats["total_registrations"] == 0

    def test_cancel_not_registered(self, client: TestClient, make_event, make_user, auth_headers):
        event = make_event()
        user = make_user()

        response = client.delete(f"/events/{event.id}/cancel/{user.id}", headers=auth_headers(user.id))

        assert response.status_code == 404
        assert response.json() == {"error": "User not registered for this event"}

    def test_cancel_requires_token(self, client: TestClient, make_event):
        event = make_event()
        assert client.delete(f"/events/{event.id}/cancel/1").status_code == 401


class TestErrorHandling:

    def test_data_store_failure_is_generic_500(self, client: TestClient, monkeypatch):
        def boom(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        monkeypatch.setattr("events_api.routes.events.list_upcoming", boom)

        response = client.get("/events/upcoming")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    def test_lock_timeout_is_generic_500(
        self, settings, database, redis_client, make_event, make_user, auth_headers
    ):
        event = make_event()
        user = make_user()
        # Another worker holds the event lock
        redis_client.set(f"event_lock:{event.id}", "someone-else", px=60_000)
        app = create_app(
            settings=replace(settings, event_lock_blocking_timeout=0),
            database=database,
            redis_client=redis_client,
        )

        with TestClient(app) as impatient_client:
            response = impatient_client.post(f"/events/{event.id}/register", headers=auth_headers(user.id))

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}
