"""Shared fixtures and fakes for the test-suite."""

import json
import os
import sys
from typing import Any

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tfm_client.models.config import ClientConfig  # noqa: E402
from tfm_client.models.entries import ApiEnvelope  # noqa: E402

SERVER = "http://tfm.local:5000"


class FakeResponse:
    """Stands in for an aiohttp response used as an async context manager."""

    def __init__(self, status: int = 200, body: bytes = b"", headers: dict | None = None):
        self.status = status
        self.body = body
        self.headers = headers or {}

    async def read(self) -> bytes:
        return self.body

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class FakeSession:
    """Replays queued responses (or raises queued exceptions) for GET requests."""

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.calls: list[tuple[str, dict]] = []
        self.closed = False

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


def json_response(payload: dict, status: int = 200) -> FakeResponse:
    return FakeResponse(status=status, body=json.dumps(payload).encode("utf-8"))


def page_payload(
    ids: list[str], page: int, total_pages: int, nested: bool = False
) -> dict:
    """Builds a successful paginated envelope with one item per id."""
    items = [{"id": i, "name": f"{i}.mp3", "isFile": True, "size": 4096} for i in ids]
    return {
        "success": True,
        "data": {"items": items} if nested else items,
        "pagination": {
            "page": page,
            "pageSize": len(ids),
            "totalItems": len(ids) * total_pages,
            "totalPages": total_pages,
            "hasNext": page < total_pages,
            "hasPrevious": page > 1,
        },
    }


def envelope(payload: dict) -> ApiEnvelope:
    return ApiEnvelope.model_validate(payload)


@pytest.fixture
def config(tmp_path) -> ClientConfig:
    return ClientConfig(server_url=SERVER, cache_dir=tmp_path / "cache")
