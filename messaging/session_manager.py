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

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Callable, Optional

from messaging.client import SessionClient
from messaging.state import RETRY_EVENTS, SessionEvent, SessionState, transition

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY_SECONDS = 10.0

SessionFactory = Callable[[], SessionClient]


class SessionUnavailableError(Exception):
    """A message was sent while the WhatsApp session is not ready."""


class SessionManager:
    """
    Keeps a single WhatsApp session alive.

    The manager owns the current session object, the immutable SessionState
    snapshot and at most one pending retry timer. Session events are handled
    on the event loop, one at a time, by replacing the snapshot through
    `transition`. Auth failures, disconnects and failed starts all schedule a
    full re-initialization after a fixed delay; there is no terminal state.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        auth_dir: str | Path = ".wa_auth",
        retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS,
    ):
        self._session_factory = session_factory
        self.auth_dir = Path(auth_dir)
        self.retry_delay_seconds = retry_delay_seconds
        self._state = SessionState()
        self._session: Optional[SessionClient] = None
        self._retry_handle: Optional[asyncio.TimerHandle] = None
        self._retry_task: Optional[asyncio.Task] = None
        self._init_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state.is_ready

    @property
    def session(self) -> Optional[SessionClient]:
        return self._session

    @property
    def has_pending_retry(self) -> bool:
        return self._retry_handle is not None

    def get_status(self) -> dict:
        """`{"ready": True}`, `{"pairingCode": ...}` or `{"waiting": True}`."""
        # One read of the snapshot; a ready transition replaces it wholesale.
        return self._state.as_status()

    async def initialize(self) -> None:
        """Discard any current session and start a fresh one."""
        self._cancel_retry()
        async with self._init_lock:
            self._cancel_retry()
            previous, self._session = self._session, None
            self._apply(SessionEvent.INITIALIZE)
            if previous is not None:
                await self._destroy(previous)

            try:
                session = self._session_factory()
                self._bind(session)
            except Exception as exc:
                logger.error("Could not create WhatsApp session: %s", exc)
                self._apply(SessionEvent.INIT_FAILED)
                self._schedule_retry()
                return

            self._session = session
            logger.info("Initializing WhatsApp session")
            try:
                await session.initialize()
            except Exception as exc:
                logger.error("WhatsApp session initialization failed: %s", exc)
                self._on_failure(session, SessionEvent.INIT_FAILED, str(exc))

    async def logout(self) -> bool:
        """
        Log the account out and wipe local credentials.

        Every step is best effort. Returns False if the session refused to log
        out or the credential directory could not be removed. A fresh
        initialization is scheduled afterwards so a new pairing code appears.
        """
        self._cancel_retry()
        clean = True
        async with self._init_lock:
            session, self._session = self._session, None
            self._apply(SessionEvent.LOGOUT)
            if session is not None:
                try:
                    await session.logout()
                except Exception as exc:
                    logger.warning("WhatsApp logout request failed: %s", exc)
                    clean = False
                await self._destroy(session)
            if not await self._wipe_credentials():
                clean = False
            self._schedule_retry()
        return clean

    async def send_message(self, chat_id: str, text: str) -> None:
        session = self._session
        if session is None or not self._state.is_ready:
            raise SessionUnavailableError(
                f"WhatsApp session is {self._state.phase.value}"
            )
        await session.send_message(chat_id, text)

    async def dispatch_webhook(self, payload: dict) -> bool:
        """Hand a gateway webhook to the current session, if it accepts them."""
        receiver = getattr(self._session, "receive_webhook", None)
        if receiver is None:
            return False
        return await receiver(payload)

    async def shutdown(self) -> None:
        """Stop retrying and release the session. Credentials are kept."""
        self._cancel_retry()
        if self._retry_task is not None and not self._retry_task.done():
            self._retry_task.cancel()
        self._retry_task = None
        session, self._session = self._session, None
        self._state = SessionState()
        if session is not None:
            await self._destroy(session)

    def _bind(self, session: SessionClient) -> None:
        session.on("qr", lambda code: self._on_pairing_code(session, code))
        session.on("authenticated", lambda: self._on_authenticated(session))
        session.on("ready", lambda: self._on_ready(session))
        session.on(
            "auth_failure",
            lambda reason=None: self._on_failure(
                session, SessionEvent.AUTH_FAILURE, reason
            ),
        )
        session.on(
            "disconnected",
            lambda reason=None: self._on_failure(
                session, SessionEvent.DISCONNECTED, reason
            ),
        )

    def _is_current(self, session: SessionClient) -> bool:
        if session is self._session:
            return True
        logger.debug("Ignoring event from a discarded WhatsApp session")
        return False

    def _on_pairing_code(self, session: SessionClient, code: str) -> None:
        if self._is_current(session):
            self._apply(SessionEvent.PAIRING_CODE, code)

    def _on_authenticated(self, session: SessionClient) -> None:
        if self._is_current(session):
            logger.info("WhatsApp session authenticated")

    def _on_ready(self, session: SessionClient) -> None:
        if self._is_current(session):
            self._apply(SessionEvent.READY)

    def _on_failure(
        self, session: SessionClient, event: SessionEvent, reason: Optional[str]
    ) -> None:
        if not self._is_current(session):
            return
        logger.warning("WhatsApp session %s: %s", event.value.lower(), reason)
        self._apply(event)
        if event in RETRY_EVENTS:
            self._schedule_retry()

    def _apply(self, event: SessionEvent, pairing_code: Optional[str] = None) -> None:
        previous = self._state
        self._state = transition(previous, event, pairing_code)
        if self._state.phase != previous.phase:
            logger.info(
                "WhatsApp session %s -> %s",
                previous.phase.value,
                self._state.phase.value,
            )

    def _schedule_retry(self) -> None:
        self._cancel_retry()
        loop = asyncio.get_running_loop()
        self._retry_handle = loop.call_later(self.retry_delay_seconds, self._fire_retry)
        logger.info(
            "Re-initializing WhatsApp session in %.1f seconds", self.retry_delay_seconds
        )

    def _fire_retry(self) -> None:
        self._retry_handle = None
        self._retry_task = asyncio.ensure_future(self.initialize())

    def _cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    async def _destroy(self, session: SessionClient) -> None:
        try:
            await session.destroy()
        except Exception as exc:
            logger.warning("Could not destroy WhatsApp session: %s", exc)

    async def _wipe_credentials(self) -> bool:
        if not self.auth_dir.exists():
            return True
        try:
            await asyncio.to_thread(shutil.rmtree, self.auth_dir)
        except OSError as exc:
            logger.warning("Could not remove WhatsApp credentials at %s: %s", self.auth_dir, exc)
            return False
        logger.info("Removed WhatsApp credentials at %s", self.auth_dir)
        return True
