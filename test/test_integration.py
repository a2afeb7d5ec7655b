import uuid
from datetime import datetime, timezone

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from gifttracker.database.connection import get_db
from gifttracker.database.models import Gift as GiftModel, Notification
from main import app

TEST_USER_ID = "test_firebase_uid_123"


# --- Helpers ---

async def _create_gift(client: AsyncClient, **overrides) -> dict:
    gift_data = {"name": "Scarf", "type": "received", "contactId": "c-1", "tags": ["winter"]}
    gift_data.update(overrides)
    response = await client.post("/gifts", json=gift_data)
    assert response.status_code == 201, f"Expected 201, got {response.status_code}. Response: {response.text}"
    return response.json()


# --- Auth and error shape ---

@pytest.mark.asyncio
async def test_missing_token_is_rejected(client: AsyncClient):
    response = await client.get("/gifts")
    assert response.status_code == 401
    assert response.json()["message"] == "Could not validate credentials"


@pytest.mark.asyncio
async def test_unsupported_method_answers_400(authenticated_client: AsyncClient):
    response = await authenticated_client.patch("/gifts")
    assert response.status_code == 400
    assert response.json() == {"message": "Unsupported method"}


@pytest.mark.asyncio
async def test_invalid_body_answers_400_with_message(authenticated_client: AsyncClient):
    response = await authenticated_client.post("/gifts", json={"name": "Book", "type": "borrowed"})
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid request")


@pytest.mark.asyncio
async def test_unexpected_failure_answers_500_json(db_session: AsyncSession, mock_firebase_auth, mocker):
    mock_firebase_auth.verify_id_token.return_value = {'uid': TEST_USER_ID}
    mocker.patch('gifttracker.controllers.gifts._get_owned_gift', side_effect=RuntimeError("database went away"))

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/gifts/abc", headers={"Authorization": "Bearer existing-user-token"})
    finally:
        del app.dependency_overrides[get_db]

    assert response.status_code == 500
    assert response.json() == {"message": "Internal server error"}


@pytest.mark.asyncio
async def test_root_is_public(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200


# --- Gifts ---

@pytest.mark.asyncio
async def test_gift_create_get_delete_round_trip(authenticated_client: AsyncClient):
    created = await _create_gift(authenticated_client)
    assert created["userId"] == TEST_USER_ID
    assert created["giftId"]

    get_response = await authenticated_client.get(f"/gifts/{created['giftId']}")
    assert get_response.status_code == 200
    assert get_response.json()["name"] == "Scarf"

    delete_response = await authenticated_client.delete(f"/gifts/{created['giftId']}")
    assert delete_response.status_code == 204

    missing = await authenticated_client.get(f"/gifts/{created['giftId']}")
    assert missing.status_code == 404
    assert missing.json()["message"] == "Gift not found"


@pytest.mark.asyncio
async def test_gift_delete_of_unknown_id_still_answers_204(authenticated_client: AsyncClient):
    response = await authenticated_client.delete(f"/gifts/{uuid.uuid4()}")
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_gift_list_filters_by_type_and_contact(authenticated_client: AsyncClient):
    await _create_gift(authenticated_client, name="Scarf", type="received", contactId="c-1")
    await _create_gift(authenticated_client, name="Lamp", type="given", contactId="c-1", cost=30)
    await _create_gift(authenticated_client, name="Mug", type="given", contactId="c-2")

    given = await authenticated_client.get("/gifts", params={"type": "given"})
    assert sorted(g["name"] for g in given.json()) == ["Lamp", "Mug"]

    for_contact = await authenticated_client.get("/gifts", params={"contactId": "c-1"})
    assert sorted(g["name"] for g in for_contact.json()) == ["Lamp", "Scarf"]


@pytest.mark.asyncio
async def test_gift_update_changes_only_sent_fields(authenticated_client: AsyncClient):
    created = await _create_gift(authenticated_client)

    response = await authenticated_client.put(f"/gifts/{created['giftId']}", json={"thanked": True})
    assert response.status_code == 200
    body = response.json()
    assert body["thanked"] is True
    assert body["name"] == "Scarf"
    assert body["updatedAt"] is not None


@pytest.mark.asyncio
async def test_gift_update_of_unknown_id_is_404(authenticated_client: AsyncClient):
    response = await authenticated_client.put(f"/gifts/{uuid.uuid4()}", json={"name": "Other"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_gifts_are_scoped_to_their_owner(authenticated_client: AsyncClient, mock_firebase_auth):
    created = await _create_gift(authenticated_client)

    mock_firebase_auth.verify_id_token.return_value = {'uid': 'someone_else'}
    response = await authenticated_client.get(f"/gifts/{created['giftId']}")
    assert response.status_code == 404

    listing = await authenticated_client.get("/gifts")
    assert listing.json() == []


# --- Contacts ---

@pytest.mark.asyncio
async def test_contact_crud(authenticated_client: AsyncClient):
    contact_data = {
        "name": "Alice",
        "email": "alice@example.com",
        "interests": ["books"],
        "important_dates": [{"date": "1990-05-01", "occasion": "Birthday"}],
    }
    create_response = await authenticated_client.post("/contacts", json=contact_data)
    assert create_response.status_code == 201
    contact_id = create_response.json()["contactId"]

    update_response = await authenticated_client.put(f"/contacts/{contact_id}", json={"phone": "555-0100"})
    assert update_response.status_code == 200
    assert update_response.json()["phone"] == "555-0100"
    assert update_response.json()["important_dates"][0]["occasion"] == "Birthday"

    listing = await authenticated_client.get("/contacts")
    assert [c["name"] for c in listing.json()] == ["Alice"]

    assert (await authenticated_client.delete(f"/contacts/{contact_id}")).status_code == 204
    assert (await authenticated_client.get(f"/contacts/{contact_id}")).status_code == 404


@pytest.mark.asyncio
async def test_contact_with_bad_email_is_rejected(authenticated_client: AsyncClient):
    response = await authenticated_client.post("/contacts", json={"name": "Bob", "email": "not-an-email"})
    assert response.status_code == 400


# --- Events ---

@pytest.mark.asyncio
async def test_event_listing_with_date_range(authenticated_client: AsyncClient):
    for name, date in [("New Year", "2024-01-01"), ("Birthday", "2024-03-15"), ("Anniversary", "2024-06-20")]:
        response = await authenticated_client.post("/events", json={"name": name, "date": date, "contactIds": ["c-1"]})
        assert response.status_code == 201

    response = await authenticated_client.get("/events", params={"startDate": "2024-02-01", "endDate": "2024-12-31"})
    assert response.status_code == 200
    assert [e["name"] for e in response.json()] == ["Birthday", "Anniversary"]


@pytest.mark.asyncio
async def test_event_update_and_delete(authenticated_client: AsyncClient):
    created = (await authenticated_client.post("/events", json={"name": "Party", "date": "2024-08-01"})).json()

    response = await authenticated_client.put(f"/events/{created['eventId']}",
                                              json={"reminder": {"enabled": False, "daysBeforeEvent": 3}})
    assert response.status_code == 200
    assert response.json()["reminder"] == {"enabled": False, "daysBeforeEvent": 3}

    assert (await authenticated_client.delete(f"/events/{created['eventId']}")).status_code == 204


# --- Users ---

@pytest.mark.asyncio
async def test_user_profile_is_empty_until_saved(authenticated_client: AsyncClient):
    response = await authenticated_client.get("/users")
    assert response.status_code == 200
    assert response.json() == {}

    update = {"name": "Auth Test User", "email": "authtest@example.com", "preferences": {"theme": "dark"}}
    response = await authenticated_client.put("/users", json=update)
    assert response.status_code == 200
    assert response.json()["userId"] == TEST_USER_ID
    assert response.json()["preferences"] == {"notifications": True, "theme": "dark"}

    response = await authenticated_client.get("/users")
    assert response.json()["name"] == "Auth Test User"


# --- Notifications ---

@pytest.mark.asyncio
async def test_notifications_list_only_the_owners(authenticated_client: AsyncClient, db_session: AsyncSession):
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for notification_id, owner in [("n-1", TEST_USER_ID), ("n-2", "someone_else"), ("n-3", TEST_USER_ID)]:
        db_session.add(Notification(
            notification_id=notification_id,
            user_id=owner,
            event_id="e-1",
            contact_id="c-1",
            message="Reminder: Birthday is coming up on 2024-01-05",
            date="2024-01-05",
            created_at=now,
            read=False,
        ))
    await db_session.commit()

    response = await authenticated_client.get("/notifications")
    assert response.status_code == 200
    assert sorted(n["notificationId"] for n in response.json()) == ["n-1", "n-3"]

    read_response = await authenticated_client.put("/notifications/n-1/read")
    assert read_response.status_code == 200
    assert read_response.json()["read"] is True

    assert (await authenticated_client.put("/notifications/n-2/read")).status_code == 404
    assert (await authenticated_client.delete("/notifications/n-3")).status_code == 204


# --- Images ---

@pytest.mark.asyncio
async def test_upload_url_is_signed_for_the_caller(authenticated_client: AsyncClient, mocker):
    s3 = mocker.MagicMock()
    s3.generate_presigned_url.return_value = "https://signed.example/upload"
    mocker.patch('gifttracker.controllers.images.get_s3_client', return_value=s3)

    response = await authenticated_client.post("/images/upload-url", json={"contentType": "image/png"})

    assert response.status_code == 200
    body = response.json()
    assert body["uploadUrl"] == "https://signed.example/upload"
    assert body["imageUrl"].endswith(f"/{TEST_USER_ID}/{body['imageId']}")
    _, kwargs = s3.generate_presigned_url.call_args
    assert kwargs["Params"]["Key"] == f"{TEST_USER_ID}/{body['imageId']}"


@pytest.mark.asyncio
async def test_upload_url_refuses_non_images(authenticated_client: AsyncClient):
    response = await authenticated_client.post("/images/upload-url", json={"contentType": "text/plain"})
    assert response.status_code == 400
    assert "Only images" in response.json()["message"]


# --- Update validation ---

@pytest.mark.asyncio
@pytest.mark.parametrize("change", [{"name": None}, {"name": "   "}, {"type": None}, {"thanked": None}])
async def test_gift_update_refuses_empty_required_fields(authenticated_client: AsyncClient, change):
    created = await _create_gift(authenticated_client)

    response = await authenticated_client.put(f"/gifts/{created['giftId']}", json=change)

    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid request")
    assert (await authenticated_client.get(f"/gifts/{created['giftId']}")).json()["name"] == "Scarf"


@pytest.mark.asyncio
async def test_gift_direction_change_clears_cost_in_the_row(authenticated_client: AsyncClient,
                                                          db_session: AsyncSession):
    created = await _create_gift(authenticated_client, name="Lamp", type="given", cost=30)

    response = await authenticated_client.put(f"/gifts/{created['giftId']}", json={"type": "received"})
    assert response.status_code == 200

    db_gift = await db_session.get(GiftModel, created["giftId"])
    assert db_gift.type == "received"
    assert db_gift.cost is None


@pytest.mark.asyncio
async def test_contact_and_event_updates_refuse_null_required_fields(authenticated_client: AsyncClient):
    contact = (await authenticated_client.post("/contacts", json={"name": "Alice"})).json()
    event = (await authenticated_client.post("/events", json={"name": "Party", "date": "2024-08-01"})).json()

    assert (await authenticated_client.put(f"/contacts/{contact['contactId']}", json={"name": None})).status_code == 400
    assert (await authenticated_client.put(f"/events/{event['eventId']}", json={"date": None})).status_code == 400
    assert (await authenticated_client.put(f"/events/{event['eventId']}", json={"name": ""})).status_code == 400


@pytest.mark.asyncio
async def test_event_end_date_includes_timed_events_on_that_day(authenticated_client: AsyncClient):
    for name, date in [("Brunch", "2024-01-05T10:00:00"), ("Dinner", "2024-01-06T19:00:00")]:
        assert (await authenticated_client.post("/events", json={"name": name, "date": date})).status_code == 201

    response = await authenticated_client.get("/events", params={"endDate": "2024-01-05"})

    assert [e["name"] for e in response.json()] == ["Brunch"]
