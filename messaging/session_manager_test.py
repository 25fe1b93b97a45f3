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
import os
import shutil
import tempfile
import unittest

import httpx

from messaging.client import GatewaySession, InMemorySession
from messaging.client_test import FakeGateway, status_webhook
from messaging.session_manager import SessionManager, SessionUnavailableError
from messaging.state import SessionPhase

RETRY_DELAY = 0.05


class RecordingFactory:
    """Builds InMemorySession objects and remembers every one it built."""

    def __init__(self, session_cls=InMemorySession):
        self.session_cls = session_cls
        self.fail_initialize = False
        self.fail_create = False
        self.calls = 0
        self.sessions = []

    def __call__(self):
        self.calls += 1
        if self.fail_create:
            raise ValueError("bad config")
        session = self.session_cls(fail_initialize=self.fail_initialize)
        self.sessions.append(session)
        return session

    def live(self):
        return [s for s in self.sessions if not s.destroyed]


class RefusingLogoutSession(InMemorySession):
    async def logout(self):
        raise RuntimeError("gateway said no")


class SessionManagerTest(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.auth_dir = tempfile.mkdtemp()
        self.factory = RecordingFactory()
        self.manager = SessionManager(
            self.factory, auth_dir=self.auth_dir, retry_delay_seconds=RETRY_DELAY
        )

    async def asyncTearDown(self):
        await self.manager.shutdown()

    def tearDown(self):
        shutil.rmtree(self.auth_dir, ignore_errors=True)

    async def _wait_for_retry(self):
        await asyncio.sleep(RETRY_DELAY * 4)

    async def test_initialize_starts_a_session(self):
        await self.manager.initialize()
        self.assertEqual(len(self.factory.sessions), 1)
        self.assertTrue(self.factory.sessions[0].initialized)
        self.assertEqual(self.manager.state.phase, SessionPhase.UNINITIALIZED)
        self.assertEqual(self.manager.get_status(), {"waiting": True})

    async def test_pairing_then_ready(self):
        await self.manager.initialize()
        session = self.manager.session
        await session.emit("qr", "pair-me")
        self.assertEqual(self.manager.get_status(), {"pairingCode": "pair-me"})

        await session.emit("authenticated")
        await session.emit("ready")
        self.assertEqual(self.manager.get_status(), {"ready": True})

        # A late code never shows up once ready.
        await session.emit("qr", "late-code")
        self.assertEqual(self.manager.get_status(), {"ready": True})

    async def test_disconnect_schedules_reinitialization(self):
        await self.manager.initialize()
        first = self.manager.session
        await first.emit("ready")
        await first.emit("disconnected", "phone offline")

        self.assertEqual(self.manager.state.phase, SessionPhase.DISCONNECTED)
        self.assertEqual(self.manager.get_status(), {"waiting": True})
        self.assertTrue(self.manager.has_pending_retry)

        await self._wait_for_retry()
        self.assertEqual(len(self.factory.sessions), 2)
        self.assertTrue(first.destroyed)
        self.assertIs(self.manager.session, self.factory.sessions[1])
        self.assertFalse(self.manager.has_pending_retry)

    async def test_auth_failure_schedules_reinitialization(self):
        await self.manager.initialize()
        await self.manager.session.emit("qr", "code")
        await self.manager.session.emit("auth_failure", "bad credentials")

        self.assertEqual(self.manager.state.phase, SessionPhase.AUTH_FAILED)
        self.assertIsNone(self.manager.state.pairing_code)
        self.assertTrue(self.manager.has_pending_retry)

        await self._wait_for_retry()
        self.assertEqual(len(self.factory.sessions), 2)

    async def test_failed_initialize_retries_until_it_succeeds(self):
        self.factory.fail_initialize = True
        await self.manager.initialize()
        self.assertEqual(self.manager.state.phase, SessionPhase.UNINITIALIZED)
        self.assertTrue(self.manager.has_pending_retry)

        self.factory.fail_initialize = False
        await self._wait_for_retry()
        self.assertGreaterEqual(len(self.factory.sessions), 2)
        self.assertTrue(self.manager.session.initialized)
        self.assertFalse(self.manager.has_pending_retry)
        self.assertEqual(len(self.factory.live()), 1)

    async def test_concurrent_initialize_leaves_one_live_session(self):
        await asyncio.gather(self.manager.initialize(), self.manager.initialize())
        self.assertEqual(len(self.factory.sessions), 2)
        self.assertEqual(self.factory.live(), [self.manager.session])
        self.assertFalse(self.manager.has_pending_retry)

    async def test_initialize_cancels_pending_retry(self):
        self.factory.fail_initialize = True
        await self.manager.initialize()
        self.assertTrue(self.manager.has_pending_retry)

        self.factory.fail_initialize = False
        await self.manager.initialize()
        self.assertFalse(self.manager.has_pending_retry)

        await self._wait_for_retry()
        # The cancelled timer must not have produced another session.
        self.assertEqual(len(self.factory.sessions), 2)

    async def test_events_from_discarded_session_are_ignored(self):
        await self.manager.initialize()
        stale = self.manager.session
        await self.manager.initialize()

        await stale.emit("ready")
        self.assertFalse(self.manager.is_ready)
        await stale.emit("disconnected", "old socket closed")
        self.assertFalse(self.manager.has_pending_retry)
        self.assertEqual(self.manager.state.phase, SessionPhase.UNINITIALIZED)

    async def test_logout_wipes_credentials(self):
        with open(os.path.join(self.auth_dir, "session.json"), "w") as f:
            f.write("{}")
        await self.manager.initialize()
        session = self.manager.session
        await session.emit("ready")

        clean = await self.manager.logout()

        self.assertTrue(clean)
        self.assertTrue(session.logged_out)
        self.assertTrue(session.destroyed)
        self.assertFalse(os.path.exists(self.auth_dir))
        self.assertEqual(self.manager.state.phase, SessionPhase.DISCONNECTED)
        self.assertEqual(self.manager.get_status(), {"waiting": True})
        self.assertTrue(self.manager.has_pending_retry)

    async def test_logout_without_session_is_safe(self):
        clean = await self.manager.logout()
        self.assertTrue(clean)
        self.assertIsNone(self.manager.session)
        self.assertEqual(self.manager.get_status(), {"waiting": True})

    async def test_logout_reports_failed_session_logout(self):
        factory = RecordingFactory(RefusingLogoutSession)
        manager = SessionManager(
            factory, auth_dir=self.auth_dir, retry_delay_seconds=60
        )
        await manager.initialize()
        await manager.session.emit("ready")

        clean = await manager.logout()

        self.assertFalse(clean)
        self.assertTrue(factory.sessions[0].destroyed)
        self.assertFalse(os.path.exists(self.auth_dir))
        self.assertFalse(manager.is_ready)
        await manager.shutdown()

    async def test_not_ready_after_logout_until_new_pairing(self):
        await self.manager.initialize()
        await self.manager.session.emit("ready")
        await self.manager.logout()

        await self._wait_for_retry()
        self.assertEqual(len(self.factory.sessions), 2)
        self.assertNotEqual(self.manager.get_status(), {"ready": True})

        await self.manager.session.emit("qr", "new-code")
        self.assertEqual(self.manager.get_status(), {"pairingCode": "new-code"})
        await self.manager.session.emit("ready")
        self.assertEqual(self.manager.get_status(), {"ready": True})

    async def test_send_message_requires_ready(self):
        await self.manager.initialize()
        with self.assertRaises(SessionUnavailableError):
            await self.manager.send_message("972501234567@c.us", "hi")

        await self.manager.session.emit("ready")
        await self.manager.send_message("972501234567@c.us", "hi")
        self.assertEqual(
            self.manager.session.sent, [("972501234567@c.us", "hi")]
        )

    async def test_in_memory_session_ignores_webhooks(self):
        await self.manager.initialize()
        handled = await self.manager.dispatch_webhook({"event": "session.status"})
        self.assertFalse(handled)

    async def test_shutdown_cancels_retry(self):
        self.factory.fail_initialize = True
        await self.manager.initialize()
        self.assertTrue(self.manager.has_pending_retry)

        await self.manager.shutdown()
        self.assertFalse(self.manager.has_pending_retry)
        await self._wait_for_retry()
        self.assertEqual(len(self.factory.sessions), 1)

    async def test_factory_error_schedules_retry(self):
        self.factory.fail_create = True
        await self.manager.initialize()

        self.assertIsNone(self.manager.session)
        self.assertEqual(self.manager.state.phase, SessionPhase.UNINITIALIZED)
        self.assertTrue(self.manager.has_pending_retry)

        self.factory.fail_create = False
        await self._wait_for_retry()
        self.assertTrue(self.manager.session.initialized)
        self.assertFalse(self.manager.has_pending_retry)

    async def test_retry_survives_factory_error_after_disconnect(self):
        await self.manager.initialize()
        await self.manager.session.emit("ready")
        self.factory.fail_create = True
        await self.manager.session.emit("disconnected", "phone offline")

        await self._wait_for_retry()
        self.assertGreaterEqual(self.factory.calls, 3)
        self.assertIsNone(self.manager.session)

        self.factory.fail_create = False
        await self._wait_for_retry()
        self.assertIsNotNone(self.manager.session)
        self.assertTrue(self.manager.session.initialized)
        self.assertEqual(len(self.factory.live()), 1)


class GatewayReinitializationTest(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.auth_dir = tempfile.mkdtemp()
        self.gateway = FakeGateway(restart_status="SCAN_QR_CODE")
        self.manager = SessionManager(
            self._build_session, auth_dir=self.auth_dir, retry_delay_seconds=RETRY_DELAY
        )

    async def asyncTearDown(self):
        await self.manager.shutdown()

    def tearDown(self):
        shutil.rmtree(self.auth_dir, ignore_errors=True)

    def _build_session(self):
        return GatewaySession(
            "http://gateway.test",
            "default",
            auth_dir=self.auth_dir,
            poll_interval=None,
            transport=httpx.MockTransport(self.gateway),
        )

    async def test_stop_webhook_after_reinitialize_keeps_new_session(self):
        await self.manager.initialize()
        await self.manager.initialize()
        self.assertEqual(self.manager.get_status(), {"pairingCode": "2@pairing-code"})

        # The gateway reports the previous incarnation's stop after the restart.
        handled = await self.manager.dispatch_webhook(status_webhook("STOPPED"))

        self.assertFalse(handled)
        self.assertEqual(self.manager.state.phase, SessionPhase.AWAITING_PAIRING)
        self.assertEqual(self.manager.get_status(), {"pairingCode": "2@pairing-code"})
        self.assertFalse(self.manager.has_pending_retry)

    async def test_confirmed_stop_webhook_schedules_retry(self):
        await self.manager.initialize()
        self.gateway.status = "STOPPED"

        handled = await self.manager.dispatch_webhook(status_webhook("STOPPED"))

        self.assertTrue(handled)
        self.assertEqual(self.manager.state.phase, SessionPhase.DISCONNECTED)
        self.assertTrue(self.manager.has_pending_retry)

        await asyncio.sleep(RETRY_DELAY * 4)
        self.assertEqual(self.manager.get_status(), {"pairingCode": "2@pairing-code"})
        self.assertFalse(self.manager.has_pending_retry)


if __name__ == "__main__":
    unittest.main()
