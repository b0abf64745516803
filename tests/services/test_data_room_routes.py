"""Data Room Routes — lifecycle, ownership scoping, filters and partial updates.

Invariants:
    - New rooms: status INCOMPLETE, zero counters, tier/access defaults applied
    - Another user's room is indistinguishable from a missing one (404)
    - userId filter never widens results beyond the caller's rooms
    - PATCH applies only supplied fields; null unlinks listing/asset ids
"""

from uuid import uuid4

from sqlalchemy import select

from dataroom.models.document_node import DocumentNode
from tests.services.helpers import USER_B, create_room, get_room, upload_file


async def test_create_room_starts_incomplete_and_empty(client):
    room = await create_room(client, name="Q1 Package", tier="SIMPLE")
    assert room["documentCount"] == 0
    assert room["totalSize"] == "0"
    assert room["status"] == "INCOMPLETE"
    assert room["tier"] == "SIMPLE"
    assert room["access"] == "RESTRICTED"
    assert room["userId"] == "user-a"


async def test_create_room_accepts_lowercase_enums(client):
    room = await create_room(client, tier="premium", access="public")
    assert room["tier"] == "PREMIUM"
    assert room["access"] == "PUBLIC"


async def test_create_room_records_organization_header(client):
    res = await client.post(
        "/data-rooms", json={"name": "Org room"},
        headers={"X-Organization-Id": "org-7"},
    )
    assert res.status_code == 201
    assert res.json()["organizationId"] == "org-7"


async def test_create_room_rejects_blank_name(client):
    res = await client.post("/data-rooms", json={"name": "   "})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_create_room_rejects_unknown_tier(client):
    res = await client.post("/data-rooms", json={"name": "X", "tier": "GOLD"})
    assert res.status_code == 400


async def test_missing_user_header_returns_401(client):
    res = await client.get("/data-rooms", headers={"X-User-Id": ""})
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"


async def test_get_room_embeds_documents_newest_first(client):
    room = await create_room(client)
    first = (await upload_file(client, room["id"], 10, "first.pdf")).json()
    second = (await upload_file(client, room["id"], 20, "second.pdf")).json()

    fetched = await get_room(client, room["id"])

    ids = [d["id"] for d in fetched["documents"]]
    assert set(ids) == {first["id"], second["id"]}
    assert fetched["documentCount"] == 2
    assert fetched["totalSize"] == "30"


async def test_other_user_gets_404(client):
    room = await create_room(client)
    res = await client.get(
        f"/data-rooms/{room['id']}", headers={"X-User-Id": USER_B},
    )
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_unknown_and_malformed_ids_return_404(client):
    assert (await client.get(f"/data-rooms/{uuid4()}")).status_code == 404
    assert (await client.get("/data-rooms/not-a-uuid")).status_code == 404


async def test_list_is_scoped_to_caller(client):
    await create_room(client, name="Mine")
    await client.post(
        "/data-rooms", json={"name": "Theirs"}, headers={"X-User-Id": USER_B},
    )

    mine = (await client.get("/data-rooms")).json()
    theirs = (await client.get("/data-rooms", headers={"X-User-Id": USER_B})).json()

    assert [r["name"] for r in mine] == ["Mine"]
    assert [r["name"] for r in theirs] == ["Theirs"]


async def test_list_filters_are_conjoined(client):
    await create_room(client, name="A", listingId="L1", assetId="X1")
    await create_room(client, name="B", listingId="L1", assetId="X2")
    await create_room(client, name="C", listingId="L2")

    by_listing = (await client.get("/data-rooms", params={"listingId": "L1"})).json()
    both = (await client.get(
        "/data-rooms", params={"listingId": "L1", "assetId": "X2"},
    )).json()

    assert {r["name"] for r in by_listing} == {"A", "B"}
    assert [r["name"] for r in both] == ["B"]


async def test_list_user_filter_cannot_reach_other_users(client):
    await client.post(
        "/data-rooms", json={"name": "Theirs"}, headers={"X-User-Id": USER_B},
    )
    await create_room(client, name="Mine")

    res = await client.get("/data-rooms", params={"userId": USER_B})
    assert res.json() == []
    own = await client.get("/data-rooms", params={"userId": "user-a"})
    assert [r["name"] for r in own.json()] == ["Mine"]


async def test_list_status_filter_is_case_insensitive(client):
    room = await create_room(client, name="Done")
    await create_room(client, name="Open")
    await client.patch(f"/data-rooms/{room['id']}", json={"status": "COMPLETE"})

    res = await client.get("/data-rooms", params={"status": "complete"})
    assert [r["name"] for r in res.json()] == ["Done"]


async def test_list_unknown_status_is_400(client):
    res = await client.get("/data-rooms", params={"status": "ARCHIVED"})
    assert res.status_code == 400


async def test_lookup_by_listing_and_asset(client):
    room = await create_room(client, listingId="L-42", assetId="A-42")

    by_listing = await client.get("/data-rooms/listing/L-42")
    by_asset = await client.get("/data-rooms/asset/A-42")

    assert by_listing.json()["id"] == room["id"]
    assert by_asset.json()["id"] == room["id"]
    assert by_listing.json()["documents"] == []


async def test_lookup_miss_returns_null(client):
    res = await client.get("/data-rooms/listing/nothing-here")
    assert res.status_code == 200
    assert res.json() is None


async def test_lookup_ignores_other_users_rooms(client):
    await client.post(
        "/data-rooms", json={"name": "Theirs", "listingId": "L-9"},
        headers={"X-User-Id": USER_B},
    )
    res = await client.get("/data-rooms/listing/L-9")
    assert res.json() is None


async def test_patch_updates_only_supplied_fields(client):
    room = await create_room(client, name="Before", tier="STANDARD", listingId="L1")

    res = await client.patch(
        f"/data-rooms/{room['id']}", json={"name": "After", "status": "pending_review"},
    )

    body = res.json()
    assert res.status_code == 200
    assert body["name"] == "After"
    assert body["status"] == "PENDING_REVIEW"
    assert body["tier"] == "STANDARD"
    assert body["listingId"] == "L1"


async def test_patch_null_unlinks_listing(client):
    room = await create_room(client, listingId="L1", assetId="A1")

    res = await client.patch(f"/data-rooms/{room['id']}", json={"listingId": None})

    assert res.json()["listingId"] is None
    assert res.json()["assetId"] == "A1"


async def test_patch_rejects_null_name(client):
    room = await create_room(client)
    res = await client.patch(f"/data-rooms/{room['id']}", json={"name": None})
    assert res.status_code == 400


async def test_patch_never_touches_counters(client):
    room = await create_room(client)
    await upload_file(client, room["id"], 100)

    res = await client.patch(
        f"/data-rooms/{room['id']}",
        json={"name": "Renamed", "documentCount": 0, "totalSize": "0"},
    )

    assert res.json()["documentCount"] == 1
    assert res.json()["totalSize"] == "100"


async def test_patch_other_users_room_is_404(client):
    room = await create_room(client)
    res = await client.patch(
        f"/data-rooms/{room['id']}", json={"name": "Hijack"},
        headers={"X-User-Id": USER_B},
    )
    assert res.status_code == 404
    assert (await get_room(client, room["id"]))["name"] == "Q1 Package"


async def test_delete_room_cascades_to_documents(client, test_session_factory, scratch_dir):
    room = await create_room(client)
    await upload_file(client, room["id"], 100)
    await upload_file(client, room["id"], 200)
    assert len(list(scratch_dir.iterdir())) == 2

    res = await client.delete(f"/data-rooms/{room['id']}")

    assert res.status_code == 204
    assert (await client.get(f"/data-rooms/{room['id']}")).status_code == 404
    async with test_session_factory() as db:
        remaining = (await db.execute(select(DocumentNode.id))).all()
    assert remaining == []
    assert list(scratch_dir.iterdir()) == []


async def test_delete_room_twice_is_404(client):
    room = await create_room(client)
    assert (await client.delete(f"/data-rooms/{room['id']}")).status_code == 204
    assert (await client.delete(f"/data-rooms/{room['id']}")).status_code == 404


async def test_delete_other_users_room_is_404(client):
    room = await create_room(client)
    res = await client.delete(
        f"/data-rooms/{room['id']}", headers={"X-User-Id": USER_B},
    )
    assert res.status_code == 404
    await get_room(client, room["id"])
