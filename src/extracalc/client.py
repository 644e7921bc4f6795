"""EtherCalcClient - async API for EtherCalc rooms.

Every operation sends a single request and returns its outcome as a value.
Remote failures are never raised; see `extracalc.results` for the shapes
an awaited call can yield.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import anyio
import httpx
from loguru import logger

from extracalc.config import (
    CREATE_TIMEOUT_MS,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_PROTOCOL,
    DEFAULT_TIMEOUT_MS,
    ClientConfig,
    Settings,
    get_settings,
)
from extracalc.results import (
    FormatError,
    HTTPErrorResult,
    JSONValue,
    Outcome,
    is_failure,
)
from extracalc.transport import (
    FORM_CONTENT_TYPE,
    HttpTransport,
    decode_body,
    encode_form,
    iter_file,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Mapping
    from types import TracebackType

# Placeholder body for rooms created without a snapshot
DEFAULT_SNAPSHOT = "..."

SOCIALCALC = "socialcalc"
XLSX = "xlsx"
CSV = "csv"

OVERWRITE_CONTENT_TYPES = {
    SOCIALCALC: "text/x-socialcalc",
    XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    CSV: "text/csv",
}

EXPORT_TYPES = frozenset({"csv.json", XLSX, "md", "html"})

CSV_HEADERS = {"Content-Type": "text/csv"}
FORM_HEADERS = {"Content-Type": FORM_CONTENT_TYPE}


class EtherCalcClient:
    """Client for a remote EtherCalc server.

    Example:
        >>> async with EtherCalcClient("localhost", 8000) as client:
        ...     room = await client.create_room()
        ...     await client.post_command("my-room", ["set A1 value n 1"])
        ...     cells = await client.get_cells("my-room")
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        protocol: str = DEFAULT_PROTOCOL,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        *,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client. No request is made until the first call.

        Args:
            host: Server host name
            port: Server port
            protocol: URL scheme, http or https
            timeout_ms: Default per-request timeout in milliseconds
            config: Prebuilt configuration; overrides the values above
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        if config is None:
            config = ClientConfig(
                protocol=protocol, host=host, port=port, timeout_ms=timeout_ms
            )
        self._config = config
        self._transport = HttpTransport(config, transport=transport)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> EtherCalcClient:
        """Build a client from EXTRACALC_* environment settings."""
        settings = settings or get_settings()
        return cls(config=settings.to_client_config(), transport=transport)

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> EtherCalcClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # --- Room lifecycle ---

    async def get_room(self, room: str) -> Outcome:
        """Fetch the room's native socialcalc snapshot, unparsed."""
        return await self._fetch("GET", f"/_/{room}")

    async def create_room(
        self, room: str | None = None, snapshot: str | None = None
    ) -> Outcome:
        """Create a room.

        With a room ID the server treats the post as create-or-update of that
        room. Without one it allocates a fresh room and returns its location.
        Both use the extended creation timeout.
        """
        if room:
            return await self._fetch(
                "POST",
                f"/_/{room}",
                content=encode_form({"room": room, "snapshot": snapshot}),
                headers=FORM_HEADERS,
                timeout_ms=CREATE_TIMEOUT_MS,
            )

        return await self._fetch(
            "POST",
            "/_",
            content=encode_form({"snapshot": snapshot or DEFAULT_SNAPSHOT}),
            headers=FORM_HEADERS,
            timeout_ms=CREATE_TIMEOUT_MS,
        )

    async def overwrite(
        self, room: str, snapshot: str | bytes, fmt: str
    ) -> Outcome:
        """Replace a room's content with a snapshot.

        Args:
            room: Room to overwrite
            snapshot: Payload in the given format
            fmt: Exactly one of "socialcalc", "xlsx" or "csv"

        Returns:
            The server's response body, or a FormatError (with no request
            sent) when fmt is not recognized.
        """
        content_type = OVERWRITE_CONTENT_TYPES.get(fmt)
        if content_type is None:
            return FormatError(fmt)

        body = snapshot.encode("utf-8") if isinstance(snapshot, str) else bytes(snapshot)
        return await self._fetch(
            "PUT",
            f"/_/{room}",
            content=body,
            headers={"Content-Type": content_type},
        )

    async def delete_room(self, room: str) -> Outcome:
        # Any 2xx answer counts as deleted; the body is not inspected
        outcome = await self._request("DELETE", f"/_/{room}")
        if isinstance(outcome, httpx.Response):
            return True
        return outcome

    async def room_exists(self, room: str) -> JSONValue:
        """Check whether a room exists.

        Unlike every other operation, all failures (including unreachable
        servers) come back as False.
        """
        outcome = await self._fetch("GET", f"/_exists/{room}")
        if is_failure(outcome):
            return False
        if isinstance(outcome, (str, bytes)):
            text = outcome.decode() if isinstance(outcome, bytes) else outcome
            return text.strip().lower() == "true"
        return outcome

    # --- Import / bulk data ---

    async def create_room_from_csv_file(self, path: str | Path) -> Outcome:
        """Create a room from a CSV file, streaming it as the request body."""
        return await self._upload_csv("/_/", path)

    async def append_rows_from_csv_file(self, room: str, path: str | Path) -> Outcome:
        """Append a CSV file's rows to an existing room."""
        return await self._upload_csv(f"/_/{room}", path)

    async def post_command(self, room: str, command: str | Sequence[str]) -> Outcome:
        """Submit one command or an ordered list of commands to a room.

        Commands use the socialcalc grammar, e.g. ``set A1 value n 1`` or
        ``set A2 text t test``. A list is applied by the server in order.
        """
        if not isinstance(command, str):
            command = list(command)
        return await self._fetch(
            "POST",
            f"/_/{room}",
            content=encode_form({"command": command}),
            headers=FORM_HEADERS,
        )

    # --- Export / read ---

    async def export_room(self, room: str, export_type: str) -> Outcome:
        """Export a room. Unknown export types fall back to csv."""
        export_type = export_type.lower()
        if export_type not in EXPORT_TYPES:
            export_type = CSV
        return await self._fetch("GET", f"/_/{room}/{export_type}")

    async def list_rooms(self) -> Outcome:
        return await self._fetch("GET", "/_rooms")

    async def get_cells(self, room: str) -> Outcome:
        return await self._fetch("GET", f"/_/{room}/cells")

    async def get_cell_value(self, room: str, coord: str) -> Outcome:
        """Fetch a single cell, e.g. coord="A1"."""
        return await self._fetch("GET", f"/_/{room}/cells/{coord}")

    async def get_html(self, room: str) -> Outcome:
        return await self._fetch("GET", f"/_/{room}/html")

    async def get_csv(self, room: str) -> Outcome:
        return await self._fetch("GET", f"/_/{room}/csv")

    async def get_json(self, room: str) -> Outcome:
        return await self._fetch("GET", f"/_/{room}/csv.json")

    # --- Request helpers ---

    async def _upload_csv(self, path: str, file_path: str | Path) -> Outcome:
        try:
            file = await anyio.open_file(file_path, "rb")
        except OSError as e:
            logger.warning("Cannot read CSV file {}: {}", file_path, e)
            return e

        async with file:
            return await self._fetch(
                "POST", path, content=iter_file(file), headers=CSV_HEADERS
            )

    async def _fetch(
        self,
        method: str,
        path: str,
        *,
        content: bytes | AsyncIterator[bytes] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> Outcome:
        """Send a request and return the decoded body or the failure value."""
        outcome = await self._request(
            method, path, content=content, headers=headers, timeout_ms=timeout_ms
        )
        if isinstance(outcome, httpx.Response):
            return decode_body(outcome)
        return outcome

    async def _request(
        self,
        method: str,
        path: str,
        *,
        content: bytes | AsyncIterator[bytes] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_ms: int | None = None,
    ) -> httpx.Response | HTTPErrorResult | httpx.RequestError | httpx.InvalidURL:
        try:
            return await self._transport.request(
                method, path, content=content, headers=headers, timeout_ms=timeout_ms
            )
        except httpx.HTTPStatusError as e:
            result = HTTPErrorResult.from_response(e.response)
            logger.warning(
                "{} {} failed: {} {}", method, path, result.status, result.message
            )
            return result
        except (httpx.RequestError, httpx.InvalidURL) as e:
            logger.warning("{} {} failed: {!r}", method, path, e)
            return e
