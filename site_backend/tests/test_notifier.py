import shutil
import tempfile
import unittest
from unittest.mock import AsyncMock, MagicMock

from messaging.client import InMemorySession
from messaging.session_manager import SessionManager
from site_backend.db import ContactRecord
from site_backend.notifier import (
    ContactNotifier,
    build_admin_message,
    build_submitter_message,
)


def _record(**overrides):
    fields = dict(
        id=7,
        full_name="ישראל ישראלי",
        email="israel@example.com",
        phone="050-1234567",
        message="מעוניין בפרויקט",
    )
    fields.update(overrides)
    return ContactRecord(**fields)


class ContactNotifierTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.auth_dir = tempfile.mkdtemp()
        self.session = InMemorySession()
        self.manager = SessionManager(
            lambda: self.session, auth_dir=self.auth_dir, retry_delay_seconds=60
        )
        await self.manager.initialize()
        await self.session.emit("ready")
        self.notifier = ContactNotifier(self.manager, admin_phone="052-9999999")

    async def asyncTearDown(self):
        await self.manager.shutdown()
        shutil.rmtree(self.auth_dir, ignore_errors=True)

    async def test_sends_admin_and_submitter_messages(self):
        record = _record()
        delivered = await self.notifier.notify(record)

        self.assertTrue(delivered)
        self.assertEqual(
            self.session.sent,
            [
                ("972529999999@c.us", build_admin_message(record)),
                ("972501234567@c.us", build_submitter_message(record)),
            ],
        )

    def test_templates_interpolate_record(self):
        record = _record()
        admin = build_admin_message(record)
        for value in (record.full_name, record.email, record.phone, record.message):
            self.assertIn(value, admin)
        self.assertIn(record.full_name, build_submitter_message(record))

    async def test_skips_when_not_ready(self):
        await self.session.emit("disconnected", "lost")
        delivered = await self.notifier.notify(_record())
        self.assertFalse(delivered)
        self.assertEqual(self.session.sent, [])

    async def test_send_failure_is_not_raised(self):
        self.session.fail_send = True
        delivered = await self.notifier.notify(_record())
        self.assertFalse(delivered)

    async def test_without_admin_phone_only_submitter_is_notified(self):
        notifier = ContactNotifier(self.manager, admin_phone=None)
        delivered = await notifier.notify(_record(phone="501234567"))
        self.assertTrue(delivered)
        self.assertEqual([chat for chat, _ in self.session.sent], ["972501234567@c.us"])

    async def test_session_drop_between_messages_is_contained(self):
        send = self.session.send_message

        async def send_then_drop(chat_id, text):
            await send(chat_id, text)
            await self.session.emit("disconnected", "phone offline")

        self.session.send_message = send_then_drop

        delivered = await self.notifier.notify(_record())

        self.assertFalse(delivered)
        self.assertEqual([chat for chat, _ in self.session.sent], ["972529999999@c.us"])
        self.assertFalse(self.manager.is_ready)

    async def test_unexpected_error_is_contained(self):
        manager = MagicMock()
        manager.is_ready = True
        manager.send_message = AsyncMock(side_effect=RuntimeError("boom"))
        notifier = ContactNotifier(manager, admin_phone="0529999999")

        delivered = await notifier.notify(_record())

        self.assertFalse(delivered)
        self.assertEqual(manager.send_message.await_count, 2)


if __name__ == "__main__":
    unittest.main()
