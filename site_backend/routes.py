"""
HTTP routes for the contact site API.
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from messaging.session_manager import SessionManager
from site_backend.db import ContactRecord, DbClient, PersistenceError
from site_backend.dependencies import get_db_client, get_notifier, get_session_manager
from site_backend.notifier import ContactNotifier
from site_backend.projects import get_project
from site_backend.schemas import (
    ContactResponse,
    ContactsResponse,
    ContactSubmission,
    ContactValidationError,
    LogoutResponse,
    SessionStatusResponse,
    WebhookAck,
)

logger = logging.getLogger(__name__)

router = APIRouter()

MSG_ALL_FIELDS_REQUIRED = "כל השדות נדרשים."
MSG_CONTACT_SENT = "הפנייה נשלחה בהצלחה! נחזור אליכם בהקדם."
MSG_SERVER_ERROR = "שגיאה פנימית בשרת. אנא נסו שוב מאוחר יותר."
MSG_LOGGED_OUT = "החיבור ל-WhatsApp נותק. קוד חיבור חדש ייווצר בקרוב."
MSG_LOGOUT_PARTIAL = "החיבור ל-WhatsApp אופס, אך חלק משלבי הניקוי נכשלו. בדקו את יומני השרת."


async def _read_body(request: Request) -> object:
    """Contact forms post either JSON or urlencoded bodies."""
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            return await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {}
    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


@router.get("/projects/{project_id}")
def project_details(project_id: str):
    project = get_project(project_id)
    if project is None:
        return PlainTextResponse("Project not found", status_code=404)
    return project


@router.post("/contact", response_model=ContactResponse)
async def submit_contact(
    request: Request,
    background_tasks: BackgroundTasks,
    db: DbClient = Depends(get_db_client),
    notifier: ContactNotifier = Depends(get_notifier),
):
    try:
        submission = ContactSubmission.parse(await _read_body(request))
    except ContactValidationError as exc:
        logger.info("Rejected contact submission: %s", exc)
        return JSONResponse(
            status_code=400,
            content={"status": "error", "message": MSG_ALL_FIELDS_REQUIRED},
        )

    record = ContactRecord(
        full_name=submission.fullName.strip(),
        email=submission.email.strip(),
        phone=submission.phone.strip(),
        message=submission.message.strip(),
    )
    try:
        saved = await run_in_threadpool(db.save_contact, record)
    except PersistenceError as exc:
        logger.error("Error saving contact: %s", exc)
        return JSONResponse(
            status_code=500,
            content={"status": "error", "message": MSG_SERVER_ERROR},
        )

    logger.info("A new contact was inserted with id %s", saved.id)
    # Runs after the response is sent; delivery never affects the acknowledgment.
    background_tasks.add_task(notifier.notify, saved)
    return ContactResponse(status="success", message=MSG_CONTACT_SENT)


@router.get("/contacts", response_model=ContactsResponse)
def list_contacts(db: DbClient = Depends(get_db_client)):
    try:
        records = db.list_contacts()
    except PersistenceError as exc:
        logger.error("Error listing contacts: %s", exc)
        return JSONResponse(
            status_code=500, content={"success": False, "message": str(exc)}
        )
    return ContactsResponse(
        success=True, contacts=[record.as_dict() for record in records]
    )


@router.get(
    "/qr", response_model=SessionStatusResponse, response_model_exclude_none=True
)
def whatsapp_status(manager: SessionManager = Depends(get_session_manager)):
    return manager.get_status()


@router.post("/logout-whatsapp", response_model=LogoutResponse)
async def logout_whatsapp(manager: SessionManager = Depends(get_session_manager)):
    clean = await manager.logout()
    return LogoutResponse(
        success=clean, message=MSG_LOGGED_OUT if clean else MSG_LOGOUT_PARTIAL
    )


@router.post("/whatsapp/events", response_model=WebhookAck)
async def whatsapp_events(
    request: Request, manager: SessionManager = Depends(get_session_manager)
):
    """
    Webhook target for the WhatsApp gateway. Always acknowledges so the
    gateway does not redeliver; unknown or stale events are dropped.
    """
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return WebhookAck(handled=False)
    if not isinstance(payload, dict):
        return WebhookAck(handled=False)
    try:
        handled = await manager.dispatch_webhook(payload)
    except Exception:
        logger.exception("Failed to process WhatsApp gateway event")
        handled = False
    return WebhookAck(handled=handled)
