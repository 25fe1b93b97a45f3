"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from fastapi import Depends

from messaging.client import GatewaySession, InMemorySession, SessionClient
from messaging.session_manager import SessionManager
from site_backend.config import get_settings
from site_backend.db import DbClient, InMemoryDbClient, SqlDbClient
from site_backend.notifier import ContactNotifier

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_session_manager: SessionManager | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so contacts persist across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    return _db_client


def _session_factory():
    settings = get_settings()
    if settings.use_in_memory_backends or not settings.whatsapp_gateway_url:
        logger.warning(
            "WHATSAPP_GATEWAY_URL is not set; using an in-memory session that never pairs"
        )

        def build() -> SessionClient:
            return InMemorySession()

        return build

    def build() -> SessionClient:
        return GatewaySession(
            settings.whatsapp_gateway_url,
            settings.whatsapp_session_name,
            api_key=settings.whatsapp_api_key,
            webhook_url=settings.whatsapp_webhook_url,
            auth_dir=settings.whatsapp_auth_dir,
            timeout=settings.whatsapp_request_timeout_seconds,
            poll_interval=settings.whatsapp_poll_interval_seconds,
        )

    return build


def get_session_manager() -> SessionManager:
    """
    Return the process-wide WhatsApp session manager.
    """
    global _session_manager
    if _session_manager:
        return _session_manager

    settings = get_settings()
    _session_manager = SessionManager(
        _session_factory(),
        auth_dir=settings.whatsapp_auth_dir,
        retry_delay_seconds=settings.whatsapp_retry_delay_seconds,
    )
    return _session_manager


def get_notifier(
    manager: SessionManager = Depends(get_session_manager),
) -> ContactNotifier:
    settings = get_settings()
    return ContactNotifier(
        manager,
        admin_phone=settings.admin_phone,
        country_code=settings.country_code,
    )
