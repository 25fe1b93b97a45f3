# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

"""
WhatsApp session clients.

A session object represents one connection to a WhatsApp account. It is
started with `initialize()` and reports its lifecycle through events:

    qr(code)              a pairing code is waiting to be scanned
    authenticated()       credentials were accepted
    ready()               outbound messages may be sent
    auth_failure(reason)  stored credentials were rejected
    disconnected(reason)  the connection was lost or logged out

`GatewaySession` drives a WhatsApp HTTP gateway (WAHA-compatible REST API),
which reports status changes through webhooks and status polling.
`InMemorySession` is the test/dev double.
"""

import asyncio
import contextlib
import inspect
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)

EVENTS = ("qr", "authenticated", "ready", "auth_failure", "disconnected")

SESSION_DESCRIPTOR_FILE = "session.json"

DEFAULT_POLL_INTERVAL_SECONDS = 5.0

# Gateway statuses after which the session has to be started again.
TERMINAL_STATUSES = ("FAILED", "STOPPED")


class SessionFailure(Exception):
    """The session could not be started or authenticated."""


class DeliveryError(Exception):
    """An outbound message could not be delivered."""


class SessionClient(Protocol):
    """Operations the connection manager needs from a session object."""

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        ...

    async def initialize(self) -> None:
        ...

    async def send_message(self, chat_id: str, text: str) -> None:
        ...

    async def logout(self) -> None:
        ...

    async def destroy(self) -> None:
        ...


class _EventEmitter:
    def __init__(self):
        self._handlers: dict[str, list[Callable[..., Any]]] = {}

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown session event: {event}")
        self._handlers.setdefault(event, []).append(handler)

    async def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers.get(event, ())):
            result = handler(*args)
            if inspect.isawaitable(result):
                await result


class InMemorySession(_EventEmitter):
    """Test double for a WhatsApp session."""

    def __init__(self, *, fail_initialize: bool = False, fail_send: bool = False):
        super().__init__()
        self.fail_initialize = fail_initialize
        self.fail_send = fail_send
        self.initialized = False
        self.logged_out = False
        self.destroyed = False
        self.sent: list[tuple[str, str]] = []

    async def initialize(self) -> None:
        if self.fail_initialize:
            raise SessionFailure("In-memory session configured to fail")
        self.initialized = True

    async def send_message(self, chat_id: str, text: str) -> None:
        if self.destroyed:
            raise DeliveryError("Session was destroyed")
        if self.fail_send:
            raise DeliveryError(f"In-memory send to {chat_id} failed")
        self.sent.append((chat_id, text))

    async def logout(self) -> None:
        self.logged_out = True

    async def destroy(self) -> None:
        self.destroyed = True


class GatewaySession(_EventEmitter):
    """
    Session backed by a WhatsApp HTTP gateway.

    The gateway owns the browser/websocket connection; this object starts and
    stops the named gateway session, relays its status as events and sends
    text messages through it. Status arrives through webhooks when a webhook
    URL is configured, and through polling in every case. The gateway rotates
    the pairing code while the status stays SCAN_QR_CODE, so each new code is
    emitted as its own `qr` event.

    The session name is shared by every incarnation, so a STOPPED or FAILED
    webhook is only trusted after the gateway confirms it.
    """

    def __init__(
        self,
        base_url: str,
        session_name: str = "default",
        *,
        api_key: Optional[str] = None,
        webhook_url: Optional[str] = None,
        auth_dir: str = ".wa_auth",
        timeout: float = 10.0,
        poll_interval: Optional[float] = DEFAULT_POLL_INTERVAL_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.session_name = session_name
        self.webhook_url = webhook_url
        self.auth_dir = Path(auth_dir)
        self.poll_interval = poll_interval
        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-Api-Key"] = api_key
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._started = False
        self._closed = False
        self._last_status: Optional[str] = None
        self._last_code: Optional[str] = None
        self._status_lock = asyncio.Lock()
        self._poller: Optional[asyncio.Task] = None

    async def initialize(self) -> None:
        body: dict = {}
        if self.webhook_url:
            body["config"] = {
                "webhooks": [{"url": self.webhook_url, "events": ["session.status"]}]
            }
        if (self.auth_dir / SESSION_DESCRIPTOR_FILE).exists():
            logger.info("Resuming paired WhatsApp session %s", self.session_name)
        try:
            resp = await self._client.post(
                f"/api/sessions/{self.session_name}/start", json=body
            )
            # 422 means the gateway already runs this session (e.g. after our restart).
            if resp.status_code >= 400 and resp.status_code != 422:
                raise SessionFailure(
                    f"Gateway refused to start session: HTTP {resp.status_code} {resp.text[:200]}"
                )
            status = await self._fetch_status()
        except (httpx.HTTPError, ValueError) as exc:
            raise SessionFailure(f"Gateway unreachable: {exc}") from exc
        self._started = True

        # Webhooks may have fired before our handlers were interested; replay current status.
        await self._apply_status(status)
        if self.poll_interval and status not in TERMINAL_STATUSES:
            self._poller = asyncio.ensure_future(self._poll())

    async def receive_webhook(self, payload: dict) -> bool:
        """Translate a gateway webhook into session events. Returns False if ignored."""
        if self._closed or payload.get("session") != self.session_name:
            return False
        if payload.get("event") != "session.status":
            return False
        status = (payload.get("payload") or {}).get("status")
        if status in TERMINAL_STATUSES and not await self._confirm(status):
            logger.info(
                "Ignoring %s webhook left over from an earlier %s session",
                status,
                self.session_name,
            )
            return False
        await self._apply_status(status)
        return True

    async def _confirm(self, status: str) -> bool:
        if not self._started:
            return False
        try:
            current = await self._fetch_status()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Could not confirm gateway status %s: %s", status, exc)
            return True
        return current == status

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                status = await self._fetch_status()
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Could not poll gateway status: %s", exc)
                continue
            await self._apply_status(status)
            if status in TERMINAL_STATUSES:
                return

    async def _fetch_status(self) -> Optional[str]:
        resp = await self._client.get(f"/api/sessions/{self.session_name}")
        resp.raise_for_status()
        return resp.json().get("status")

    async def _apply_status(self, status: Optional[str]) -> None:
        async with self._status_lock:
            changed = status != self._last_status
            self._last_status = status
            if status == "SCAN_QR_CODE":
                code = await self._fetch_pairing_code()
                if code and code != self._last_code:
                    self._last_code = code
                    await self.emit("qr", code)
            elif not changed:
                return
            elif status == "WORKING":
                self._persist_descriptor()
                await self.emit("authenticated")
                await self.emit("ready")
            elif status == "FAILED":
                await self.emit("auth_failure", "Gateway reported FAILED")
            elif status == "STOPPED":
                await self.emit("disconnected", "Gateway reported STOPPED")
            else:
                logger.debug("Ignoring gateway status %s", status)

    async def _fetch_pairing_code(self) -> Optional[str]:
        try:
            resp = await self._client.get(
                f"/api/{self.session_name}/auth/qr", params={"format": "raw"}
            )
            resp.raise_for_status()
            return resp.json().get("value")
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Could not fetch pairing code: %s", exc)
            return None

    def _persist_descriptor(self) -> None:
        descriptor = {
            "session": self.session_name,
            "gateway": self.base_url,
            "paired_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.auth_dir.mkdir(parents=True, exist_ok=True)
            (self.auth_dir / SESSION_DESCRIPTOR_FILE).write_text(
                json.dumps(descriptor), encoding="utf-8"
            )
        except OSError as exc:
            logger.warning("Could not write session descriptor: %s", exc)

    async def send_message(self, chat_id: str, text: str) -> None:
        try:
            resp = await self._client.post(
                "/api/sendText",
                json={"session": self.session_name, "chatId": chat_id, "text": text},
            )
        except httpx.HTTPError as exc:
            raise DeliveryError(f"Send to {chat_id} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise DeliveryError(
                f"Send to {chat_id} failed: HTTP {resp.status_code} {resp.text[:200]}"
            )

    async def logout(self) -> None:
        resp = await self._client.post(f"/api/sessions/{self.session_name}/logout")
        resp.raise_for_status()

    async def destroy(self) -> None:
        self._closed = True
        if self._poller is not None:
            self._poller.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poller
            self._poller = None
        try:
            await self._client.post(f"/api/sessions/{self.session_name}/stop")
        except httpx.HTTPError as exc:
            logger.warning("Could not stop gateway session: %s", exc)
        finally:
            await self._client.aclose()
