"""Upload size middleware — declared Content-Length checked before the body is read.

Invariants:
    - Only POST /data-rooms/{id}/documents is inspected
    - Declared length above ceiling + framing allowance -> 413 without calling the app
    - Missing or in-range Content-Length passes through untouched
"""

import json

from dataroom.api.upload_limit import MULTIPART_OVERHEAD_BYTES, UploadSizeLimitMiddleware
from dataroom.core.domain_types import MAX_UPLOAD_BYTES

EIGHT_HUNDRED_MIB = 800 * 1024 * 1024


class RecordingApp:
    def __init__(self):
        self.called = False

    async def __call__(self, scope, receive, send):
        self.called = True
        if scope["type"] != "http":
            return
        await send({"type": "http.response.start", "status": 201, "headers": []})
        await send({"type": "http.response.body", "body": b"{}"})


def _scope(path: str, content_length: int | None, method: str = "POST") -> dict:
    headers = [(b"content-type", b"multipart/form-data; boundary=x")]
    if content_length is not None:
        headers.append((b"content-length", str(content_length).encode()))
    return {"type": "http", "method": method, "path": path, "headers": headers}


async def _call(middleware, scope) -> list[dict]:
    sent = []

    async def receive():
        return {"type": "http.request", "body": b"", "more_body": False}

    async def send(message):
        sent.append(message)

    await middleware(scope, receive, send)
    return sent


async def test_declared_oversize_upload_is_rejected():
    app = RecordingApp()
    sent = await _call(
        UploadSizeLimitMiddleware(app),
        _scope("/data-rooms/abc/documents", EIGHT_HUNDRED_MIB),
    )

    assert not app.called
    assert sent[0]["status"] == 413
    body = json.loads(sent[1]["body"])
    assert body["error"]["code"] == "PAYLOAD_TOO_LARGE"
    assert "750MB" in body["error"]["message"]


async def test_ceiling_plus_framing_allowance_passes():
    app = RecordingApp()
    await _call(
        UploadSizeLimitMiddleware(app),
        _scope(
            "/data-rooms/abc/documents",
            MAX_UPLOAD_BYTES + MULTIPART_OVERHEAD_BYTES,
        ),
    )
    assert app.called


async def test_missing_content_length_passes_through():
    app = RecordingApp()
    await _call(UploadSizeLimitMiddleware(app), _scope("/data-rooms/abc/documents", None))
    assert app.called


async def test_other_routes_are_not_inspected():
    for path, method in [
        ("/data-rooms", "POST"),
        ("/data-rooms/abc/folders", "POST"),
        ("/data-rooms/abc/documents", "PUT"),
    ]:
        app = RecordingApp()
        await _call(
            UploadSizeLimitMiddleware(app),
            _scope(path, EIGHT_HUNDRED_MIB, method=method),
        )
        assert app.called, path


async def test_lifespan_scope_passes_through():
    app = RecordingApp()
    await UploadSizeLimitMiddleware(app)({"type": "lifespan"}, None, None)
    assert app.called
