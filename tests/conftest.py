"""Shared test fixtures for extracalc."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from extracalc.client import EtherCalcClient

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it handled."""

    def __init__(self, handler: Handler) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


class StubEtherCalc:
    """In-memory stand-in for an EtherCalc server.

    Keeps room bodies keyed by room name; enough for overwrite/get round trips.
    """

    def __init__(self) -> None:
        self.rooms: dict[str, bytes] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        parts = request.url.path.strip("/").split("/")
        if parts[0] == "_rooms":
            return httpx.Response(200, json=sorted(self.rooms))
        if parts[0] == "_exists":
            return httpx.Response(200, json=parts[1] in self.rooms)

        room = parts[1] if len(parts) > 1 else ""
        if request.method == "PUT":
            self.rooms[room] = request.content
            return httpx.Response(201, text="OK")
        if request.method == "GET":
            if room not in self.rooms:
                return httpx.Response(404)
            return httpx.Response(
                200,
                content=self.rooms[room],
                headers={"Content-Type": "text/plain; charset=utf-8"},
            )
        if request.method == "DELETE":
            self.rooms.pop(room, None)
            return httpx.Response(201, text="OK")
        return httpx.Response(405)


@pytest.fixture
def make_client() -> Callable[[Handler], tuple[EtherCalcClient, RecordingTransport]]:
    """Build a client whose requests go to the given handler."""

    def factory(handler: Handler) -> tuple[EtherCalcClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        return EtherCalcClient(transport=transport), transport

    return factory


@pytest.fixture
def ok_transport() -> RecordingTransport:
    """Transport answering every request with a JSON "ok"."""
    return RecordingTransport(lambda request: httpx.Response(200, json="ok"))


@pytest.fixture
def stub_service() -> StubEtherCalc:
    return StubEtherCalc()
