"""Tests for the HTTP API."""

import asyncio

from fastapi.testclient import TestClient

from travel_buddy.api.app import create_app
from travel_buddy.api.auth import flow_events
from travel_buddy.containers import AppContainer
from travel_buddy.domain.models import Session
from travel_buddy.domain.profiles import ProfileForm
from tests.conftest import (
    ID_BYTES,
    SELFIE_BYTES,
    FakeCredentialProvider,
    FakeFaceClient,
    InMemoryProfileRepository,
    RecordingNotifier,
)

AUTH = {"Authorization": "Bearer alice-token"}

PROFILE = {
    "full_name": "Alice Traveler",
    "date_of_birth": "1995-04-12",
    "address": {"street": "1 Main St", "city": "Austin", "state": "TX", "zip": "78701"},
    "about_me": "Backpacker.",
    "travel_interests": ["Nature", "Adventure"],
}


def test_health(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_flow_progresses_from_auth_to_main(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    assert client.get("/me/flow").json() == {"flow": "auth"}
    assert client.get("/me/flow", headers=AUTH).json() == {
        "flow": "profile_creation"
    }

    response = client.put("/profiles/me", json=PROFILE, headers=AUTH)

    assert response.status_code == 200
    assert response.json()["profile_created"] is True
    assert client.get("/me/flow", headers=AUTH).json() == {"flow": "main"}


def test_protected_routes_require_token(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    assert client.get("/profiles/me").status_code == 401
    bad_token = {"Authorization": "Bearer nope"}
    assert client.get("/verification", headers=bad_token).status_code == 401
    assert client.post("/verification/submit").status_code == 401


def test_profile_routes(
    container: AppContainer, profile_repository: InMemoryProfileRepository
) -> None:
    client = TestClient(create_app(container))

    assert client.get("/profiles/me", headers=AUTH).status_code == 404
    assert client.patch("/profiles/me", json=PROFILE, headers=AUTH).status_code == 404

    client.put("/profiles/me", json=PROFILE, headers=AUTH)
    edited = client.patch(
        "/profiles/me", json={**PROFILE, "about_me": "Updated."}, headers=AUTH
    )
    fetched = client.get("/profiles/me", headers=AUTH)

    assert edited.status_code == 200
    assert fetched.json()["about_me"] == "Updated."
    assert fetched.json()["travel_interests"] == ["Adventure", "Nature"]
    assert fetched.json()["is_verified"] is False


def test_profile_validation_errors(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.put(
        "/profiles/me",
        json={**PROFILE, "travel_interests": ["Skydiving"]},
        headers=AUTH,
    )

    assert response.status_code == 422


def test_profile_save_failure_returns_502(
    container: AppContainer, profile_repository: InMemoryProfileRepository
) -> None:
    profile_repository.fail_writes = True
    client = TestClient(create_app(container))

    response = client.put("/profiles/me", json=PROFILE, headers=AUTH)

    assert response.status_code == 502


def test_verification_flow_over_http(
    container: AppContainer,
    face_client: FakeFaceClient,
    profile_repository: InMemoryProfileRepository,
) -> None:
    client = TestClient(create_app(container))

    uploaded = client.put("/verification/id-image", content=ID_BYTES, headers=AUTH)
    assert uploaded.status_code == 200
    assert uploaded.json()["can_submit"] is False
    assert uploaded.json()["state"] == "capturing"

    early = client.post("/verification/submit", headers=AUTH)
    assert early.status_code == 409
    assert face_client.detect_calls == []

    selfie = client.put("/verification/selfie", content=SELFIE_BYTES, headers=AUTH)
    assert selfie.json()["content_type"] == "image/png"
    assert selfie.json()["can_submit"] is True

    result = client.post("/verification/submit", headers=AUTH)

    assert result.status_code == 200
    body = result.json()
    assert body["state"] == "succeeded"
    assert body["is_verified"] is True
    assert body["confidence"] == 0.92
    assert "92" in body["message"]
    status = client.get("/verification", headers=AUTH).json()
    assert status["is_verified"] is True
    assert status["state"] == "succeeded"
    assert profile_repository.get_profile("alice").is_verified is True


def test_failed_verification_over_http(
    container: AppContainer, face_client: FakeFaceClient
) -> None:
    face_client.verify_payload = {"isIdentical": False, "confidence": 0.1}
    client = TestClient(create_app(container))
    client.put("/verification/id-image", content=ID_BYTES, headers=AUTH)
    client.put("/verification/selfie", content=SELFIE_BYTES, headers=AUTH)

    result = client.post("/verification/submit", headers=AUTH)

    assert result.json()["state"] == "failed"
    assert result.json()["message"] == "Face on ID does not match selfie"
    status = client.get("/verification", headers=AUTH).json()
    assert status == {
        "state": "idle",
        "can_submit": False,
        "has_id_image": False,
        "has_selfie_image": False,
        "is_verified": False,
    }


def test_empty_image_upload_is_rejected(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.put("/verification/selfie", content=b"", headers=AUTH)

    assert response.status_code == 422


def test_sign_up_and_sign_in(
    container: AppContainer, credential_provider: FakeCredentialProvider
) -> None:
    client = TestClient(create_app(container))
    credentials = {"email": "dave@example.com", "password": "secret123"}

    created = client.post("/auth/sign-up", json=credentials)
    signed_in = client.post("/auth/sign-in", json=credentials)
    rejected = client.post(
        "/auth/sign-in", json={**credentials, "password": "wrong-pass"}
    )

    assert created.status_code == 201
    assert signed_in.status_code == 200
    token = signed_in.json()["access_token"]
    assert token in credential_provider.tokens
    assert rejected.status_code == 401
    flow = client.get("/me/flow", headers={"Authorization": f"Bearer {token}"})
    assert flow.json() == {"flow": "profile_creation"}


def test_sign_up_rejects_short_password(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.post(
        "/auth/sign-up", json={"email": "dave@example.com", "password": "123"}
    )

    assert response.status_code == 400


def test_sign_out_revokes_the_token(
    container: AppContainer, credential_provider: FakeCredentialProvider
) -> None:
    client = TestClient(create_app(container))

    response = client.post("/auth/sign-out", headers=AUTH)

    assert response.status_code == 200
    assert response.json() == {"status": "signed_out"}
    assert credential_provider.revoked == ["alice-token"]
    assert client.get("/me/flow", headers=AUTH).json() == {"flow": "auth"}
    assert client.post("/auth/sign-out", headers=AUTH).status_code == 401


def test_flow_stream_for_signed_out_client_ends_after_auth(
    container: AppContainer,
) -> None:
    client = TestClient(create_app(container))

    response = client.get("/me/flow/stream")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.text == 'data: {"flow":"auth"}\n\n'


def test_flow_events_follow_profile_and_sign_out(container: AppContainer) -> None:
    session = container.auth_service.session_for_token("alice-token")

    async def collect() -> list[str]:
        events = flow_events(container.flow_gate, session)
        received = [await anext(events)]
        container.profile_service.save_profile(
            "alice", ProfileForm.model_validate(PROFILE)
        )
        received.append(await anext(events))
        container.profile_service.mark_verified("alice")
        container.auth_service.sign_out(session)
        received.extend([event async for event in events])
        return received

    received = asyncio.run(collect())

    assert received == [
        'data: {"flow":"profile_creation"}\n\n',
        'data: {"flow":"main"}\n\n',
        'data: {"flow":"auth"}\n\n',
    ]
    assert container.profile_service.changes.subscriber_count("alice") == 0
    assert container.auth_service.changes.subscriber_count("alice") == 0


TRIP = {
    "trip_type": "Road trip",
    "starting_point": {"address": "Austin, TX", "lat": 30.27, "lng": -97.74},
    "destination": {"address": "Denver, CO"},
    "start_date": "2030-06-01",
    "end_date": "2030-06-07",
    "description": "Mountains and music",
    "meeting_point": {"address": "Zilker Park"},
    "trip_picture_ref": "trips/alice/cover.jpg",
}

BOB = {"Authorization": "Bearer bob-token"}


def _with_bob(
    container: AppContainer, credential_provider: FakeCredentialProvider
) -> TestClient:
    credential_provider.tokens["bob-token"] = Session(
        user_id="bob", email="bob@example.com", access_token="bob-token"
    )
    client = TestClient(create_app(container))
    client.put("/profiles/me", json=PROFILE, headers=AUTH)
    client.put(
        "/profiles/me", json={**PROFILE, "full_name": "Bob Backpacker"}, headers=BOB
    )
    return client


def test_trip_board_over_http(
    container: AppContainer,
    credential_provider: FakeCredentialProvider,
    notifier: RecordingNotifier,
) -> None:
    client = _with_bob(container, credential_provider)

    posted = client.post("/trips", json=TRIP, headers=AUTH)
    assert posted.status_code == 201
    trip_id = posted.json()["id"]
    assert posted.json()["user_id"] == "alice"

    listed = client.get("/trips", headers=BOB)
    assert [trip["id"] for trip in listed.json()] == [trip_id]
    detail = client.get(f"/trips/{trip_id}", headers=BOB)
    assert detail.json()["destination"]["address"] == "Denver, CO"
    assert client.get("/trips/missing", headers=BOB).status_code == 404

    joined = client.post(f"/trips/{trip_id}/join-requests", headers=BOB)
    assert joined.status_code == 202
    assert notifier.sent[0].host_email == "alice@example.com"
    assert notifier.sent[0].requester_name == "Bob Backpacker"

    added = client.post(
        f"/trips/{trip_id}/buddies", json={"email": "bob@example.com"}, headers=AUTH
    )
    assert added.status_code == 200
    assert added.json()["participants"] == ["bob"]


def test_trip_routes_reject_bad_requests(
    container: AppContainer, credential_provider: FakeCredentialProvider
) -> None:
    client = _with_bob(container, credential_provider)
    trip_id = client.post("/trips", json=TRIP, headers=AUTH).json()["id"]

    assert client.get("/trips").status_code == 401
    assert (
        client.post(
            "/trips", json={**TRIP, "end_date": "2030-05-01"}, headers=AUTH
        ).status_code
        == 422
    )
    assert client.post(f"/trips/{trip_id}/join-requests", headers=AUTH).status_code == (
        403
    )
    assert (
        client.post(
            f"/trips/{trip_id}/buddies", json={"email": "bob@example.com"}, headers=BOB
        ).status_code
        == 403
    )
    missing = client.post(
        f"/trips/{trip_id}/buddies", json={"email": "zoe@example.com"}, headers=AUTH
    )
    assert missing.status_code == 404


def test_join_request_delivery_failure_returns_502(
    container: AppContainer,
    credential_provider: FakeCredentialProvider,
    notifier: RecordingNotifier,
) -> None:
    client = _with_bob(container, credential_provider)
    trip_id = client.post("/trips", json=TRIP, headers=AUTH).json()["id"]
    notifier.fail = True

    response = client.post(f"/trips/{trip_id}/join-requests", headers=BOB)

    assert response.status_code == 502
