from __future__ import annotations

import json
from http import HTTPStatus
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

_SUCCESS_CODES = {200: "ok", 201: "created", 202: "accepted"}
_ENVELOPE_KEYS = ("code", "message", "data", "details")
# Recomputed for the rebuilt body
_DROP_HEADERS = frozenset({"content-length", "content-type"})


def success_envelope(data: Any = None, status_code: int = 200, **overrides: Any) -> dict[str, Any]:
    envelope = {
        "code": _SUCCESS_CODES.get(status_code, "ok"),
        "message": HTTPStatus(status_code).phrase,
        "data": data,
        "details": {},
    }
    envelope.update({key: value for key, value in overrides.items() if key in _ENVELOPE_KEYS})
    return envelope


def _already_enveloped(payload: Any) -> bool:
    return isinstance(payload, dict) and {"code", "message"} <= payload.keys() and (
        "data" in payload or "details" in payload
    )


async def _read_body(response: Response) -> bytes:
    chunks = []
    async for chunk in response.body_iterator:
        chunks.append(chunk if isinstance(chunk, bytes) else chunk.encode("utf-8"))
    return b"".join(chunks)


def _replace(original: Response, status_code: int, content: dict[str, Any]) -> JSONResponse:
    replacement = JSONResponse(status_code=status_code, content=content)
    for key, value in original.headers.items():
        if key.lower() not in _DROP_HEADERS:
            replacement.headers[key] = value
    return replacement


class ResponseEnvelopeMiddleware(BaseHTTPMiddleware):
    """Wrap successful JSON bodies as ``{code, message, data, details}``.

    Error responses are already enveloped by the exception handlers, so only
    2xx responses are touched. A 204 becomes a 200 with ``data: null``.
    """

    async def dispatch(self, request, call_next) -> Response:
        response = await call_next(request)
        status_code = response.status_code

        if not 200 <= status_code < 300:
            return response
        if status_code == 204:
            return _replace(response, 200, success_envelope(None))
        if not response.headers.get("content-type", "").startswith("application/json"):
            return response

        raw = await _read_body(response)
        try:
            payload = json.loads(raw) if raw else None
        except ValueError:
            return Response(
                content=raw,
                status_code=status_code,
                headers=dict(response.headers),
                media_type=response.media_type,
            )

        if _already_enveloped(payload):
            return _replace(response, status_code, success_envelope(status_code=status_code, **payload))
        return _replace(response, status_code, success_envelope(payload, status_code))


def register_response_envelope(app) -> None:
    app.add_middleware(ResponseEnvelopeMiddleware)
