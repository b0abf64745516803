"""Document Routes — uploads, folders and deletion keep room counters exact.

Invariants:
    - Every node create/delete moves documentCount/totalSize by exactly its rows
    - Rejected uploads (size, folder, room) leave no node and no scratch file
    - Deleting a folder removes and un-counts its whole subtree
    - Deleting the same node twice decrements once
"""

from uuid import uuid4

from tests.services.helpers import (
    TEST_MAX_BYTES, USER_B, create_room, get_room, upload_file,
)


async def test_upload_counts_into_room(client):
    room = await create_room(client)

    res = await upload_file(client, room["id"], 1_048_576)

    assert res.status_code == 201
    doc = res.json()
    assert doc["size"] == "1048576"
    assert doc["folderId"] is None
    assert doc["storageState"] == "RECEIVED"
    assert doc["contentAddress"] is None
    assert "tempStoragePath" not in doc
    fetched = await get_room(client, room["id"])
    assert fetched["documentCount"] == 1
    assert fetched["totalSize"] == "1048576"


async def test_upload_then_delete_first_leaves_second(client):
    room = await create_room(client)
    first = (await upload_file(client, room["id"], 1_048_576)).json()
    await upload_file(client, room["id"], 2_000_000, "second.pdf")

    res = await client.delete(f"/data-rooms/{room['id']}/documents/{first['id']}")

    assert res.status_code == 204
    fetched = await get_room(client, room["id"])
    assert fetched["documentCount"] == 1
    assert fetched["totalSize"] == "2000000"


async def test_oversized_upload_is_413_and_records_nothing(client, scratch_dir):
    room = await create_room(client)

    res = await upload_file(client, room["id"], TEST_MAX_BYTES + 1, "huge.bin")

    assert res.status_code == 413
    assert res.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"
    fetched = await get_room(client, room["id"])
    assert fetched["documentCount"] == 0
    assert fetched["totalSize"] == "0"
    assert list(scratch_dir.iterdir()) == []


async def test_upload_exactly_at_ceiling_is_accepted(client):
    room = await create_room(client)
    res = await upload_file(client, room["id"], TEST_MAX_BYTES)
    assert res.status_code == 201
    assert res.json()["size"] == str(TEST_MAX_BYTES)


async def test_upload_without_file_is_400(client):
    room = await create_room(client)
    res = await client.post(
        f"/data-rooms/{room['id']}/documents", data={"name": "nothing"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "FILE_REQUIRED"


async def test_upload_uses_explicit_name_and_description(client):
    room = await create_room(client)
    res = await upload_file(
        client, room["id"], 5, "scan_0001.pdf",
        name="Title deed", description="Signed copy",
    )
    doc = res.json()
    assert doc["name"] == "Title deed"
    assert doc["originalName"] == "scan_0001.pdf"
    assert doc["description"] == "Signed copy"
    assert doc["mimeType"] == "application/pdf"


async def test_traversal_filename_stays_in_scratch_dir(client, scratch_dir):
    room = await create_room(client)
    res = await upload_file(client, room["id"], 5, "../../etc/passwd")
    assert res.status_code == 201
    [stored] = list(scratch_dir.iterdir())
    assert stored.name.endswith("-passwd")
    assert stored.parent == scratch_dir


async def test_upload_into_foreign_room_is_404_and_writes_nothing(client, scratch_dir):
    room = await create_room(client)
    res = await client.post(
        f"/data-rooms/{room['id']}/documents",
        files={"file": ("a.pdf", b"abc", "application/pdf")},
        headers={"X-User-Id": USER_B},
    )
    assert res.status_code == 404
    assert list(scratch_dir.iterdir()) == []


async def test_upload_into_unknown_folder_is_400(client, scratch_dir):
    room = await create_room(client)

    res = await upload_file(client, room["id"], 10, folderId=str(uuid4()))

    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "FOLDER_NOT_FOUND"
    assert error["context"]["field"] == "folderId"
    assert (await get_room(client, room["id"]))["documentCount"] == 0
    assert list(scratch_dir.iterdir()) == []


async def test_folder_from_another_room_is_rejected(client):
    room_a = await create_room(client, name="A")
    room_b = await create_room(client, name="B")
    folder = (await client.post(
        f"/data-rooms/{room_b['id']}/folders", json={"name": "Legal"},
    )).json()

    res = await upload_file(client, room_a["id"], 10, folderId=folder["id"])

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "FOLDER_NOT_FOUND"


async def test_empty_folder_id_means_top_level(client):
    room = await create_room(client)
    res = await upload_file(client, room["id"], 10, folderId="")
    assert res.status_code == 201
    assert res.json()["folderId"] is None


async def test_create_folder_counts_as_empty_node(client):
    room = await create_room(client)

    res = await client.post(
        f"/data-rooms/{room['id']}/folders", json={"name": "Financials"},
    )

    folder = res.json()
    assert res.status_code == 201
    assert folder["size"] == "0"
    assert folder["storageState"] == "EMPTY"
    fetched = await get_room(client, room["id"])
    assert fetched["documentCount"] == 1
    assert fetched["totalSize"] == "0"


async def test_deleting_folder_removes_subtree_and_its_sizes(client, scratch_dir):
    room = await create_room(client)
    rid = room["id"]
    outer = (await client.post(f"/data-rooms/{rid}/folders", json={"name": "Outer"})).json()
    inner = (await client.post(
        f"/data-rooms/{rid}/folders", json={"name": "Inner", "folderId": outer["id"]},
    )).json()
    await upload_file(client, rid, 100, "a.pdf", folderId=outer["id"])
    await upload_file(client, rid, 50, "b.pdf", folderId=inner["id"])
    await upload_file(client, rid, 7, "kept.pdf")
    before = await get_room(client, rid)
    assert before["documentCount"] == 5
    assert before["totalSize"] == "157"

    res = await client.delete(f"/data-rooms/{rid}/documents/{outer['id']}")

    assert res.status_code == 204
    after = await get_room(client, rid)
    assert after["documentCount"] == 1
    assert after["totalSize"] == "7"
    assert [d["name"] for d in after["documents"]] == ["kept.pdf"]
    assert len(list(scratch_dir.iterdir())) == 1


async def test_double_delete_decrements_once(client):
    room = await create_room(client)
    doc = (await upload_file(client, room["id"], 300)).json()
    await upload_file(client, room["id"], 40, "other.pdf")
    url = f"/data-rooms/{room['id']}/documents/{doc['id']}"

    assert (await client.delete(url)).status_code == 204
    assert (await client.delete(url)).status_code == 404

    fetched = await get_room(client, room["id"])
    assert fetched["documentCount"] == 1
    assert fetched["totalSize"] == "40"


async def test_delete_document_through_wrong_room_is_404(client):
    room_a = await create_room(client, name="A")
    room_b = await create_room(client, name="B")
    doc = (await upload_file(client, room_a["id"], 10)).json()

    res = await client.delete(f"/data-rooms/{room_b['id']}/documents/{doc['id']}")

    assert res.status_code == 404
    assert (await get_room(client, room_a["id"]))["documentCount"] == 1


async def test_delete_document_as_other_user_is_404(client):
    room = await create_room(client)
    doc = (await upload_file(client, room["id"], 10)).json()
    res = await client.delete(
        f"/data-rooms/{room['id']}/documents/{doc['id']}",
        headers={"X-User-Id": USER_B},
    )
    assert res.status_code == 404
