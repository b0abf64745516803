"""Request helpers shared by route tests."""

USER_A = "user-a"
USER_B = "user-b"
TEST_MAX_BYTES = 4 * 1024 * 1024


async def create_room(client, **body) -> dict:
    body.setdefault("name", "Q1 Package")
    res = await client.post("/data-rooms", json=body)
    assert res.status_code == 201, res.text
    return res.json()


async def upload_file(
    client, room_id: str, size: int, filename: str = "doc.pdf", **form,
):
    return await client.post(
        f"/data-rooms/{room_id}/documents",
        files={"file": (filename, b"x" * size, "application/pdf")},
        data=form,
    )


async def get_room(client, room_id: str) -> dict:
    res = await client.get(f"/data-rooms/{room_id}")
    assert res.status_code == 200, res.text
    return res.json()
