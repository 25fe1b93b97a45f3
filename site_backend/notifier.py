"""
WhatsApp notifications for new contact submissions.
"""

from __future__ import annotations

import logging
from typing import Optional

from messaging.phone import DEFAULT_COUNTRY_CODE, to_chat_id
from messaging.session_manager import SessionManager
from site_backend.db import ContactRecord

logger = logging.getLogger(__name__)

ADMIN_TEMPLATE = (
    "פנייה חדשה מהאתר:\n"
    "שם: {full_name}\n"
    "אימייל: {email}\n"
    "טלפון: {phone}\n"
    "הודעה: {message}"
)

SUBMITTER_TEMPLATE = (
    "שלום {full_name},\n"
    "תודה שפנית אלינו! קיבלנו את פנייתך ונחזור אליך בהקדם."
)


def build_admin_message(record: ContactRecord) -> str:
    return ADMIN_TEMPLATE.format(
        full_name=record.full_name,
        email=record.email,
        phone=record.phone,
        message=record.message,
    )


def build_submitter_message(record: ContactRecord) -> str:
    return SUBMITTER_TEMPLATE.format(full_name=record.full_name)


class ContactNotifier:
    """
    Sends the admin and the submitter a WhatsApp message for each submission.

    Delivery is best effort: the record is already saved when this runs, so
    nothing here raises. Returns True only when every attempted message went out.
    """

    def __init__(
        self,
        manager: SessionManager,
        *,
        admin_phone: Optional[str] = None,
        country_code: str = DEFAULT_COUNTRY_CODE,
    ):
        self.manager = manager
        self.admin_phone = admin_phone
        self.country_code = country_code

    async def notify(self, record: ContactRecord) -> bool:
        if not self.manager.is_ready:
            logger.info(
                "WhatsApp not ready (%s); skipping notifications for contact %s",
                self.manager.state.phase.value,
                record.id,
            )
            return False

        delivered = True
        if self.admin_phone:
            delivered &= await self._send(
                self.admin_phone, build_admin_message(record), "admin", record
            )
        else:
            logger.warning("ADMIN_PHONE is not set; skipping admin notification")
        delivered &= await self._send(
            record.phone, build_submitter_message(record), "submitter", record
        )
        return delivered

    async def _send(
        self, phone: str, text: str, recipient: str, record: ContactRecord
    ) -> bool:
        chat_id = to_chat_id(phone, self.country_code)
        try:
            # Raises SessionUnavailableError if the session dropped since the check above.
            await self.manager.send_message(chat_id, text)
        except Exception as exc:
            logger.error(
                "Failed to notify %s for contact %s: %s", recipient, record.id, exc
            )
            return False
        logger.info("Sent %s notification for contact %s", recipient, record.id)
        return True
