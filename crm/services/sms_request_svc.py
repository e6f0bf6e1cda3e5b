"""SMS info-request flow: ask a customer for missing service details.

Each phone number has one append-only thread. Appends for the same number
are serialized with an asyncio lock so concurrent requests never overwrite
each other's message.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.messaging import SMSThread
from . import messaging_svc

log = logging.getLogger(__name__)

MAX_LISTED_FIELDS = 5

_phone_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


def _phone_lock(phone_number: str) -> asyncio.Lock:
    """Shared lock for a number; dropped once no caller holds a reference."""
    lock = _phone_locks.get(phone_number)
    if lock is None:
        lock = _phone_locks[phone_number] = asyncio.Lock()
    return lock


def _field_label(field: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in field.replace("_", " ").split(" "))


def build_info_request_message(
    missing_fields: list[dict],
    *,
    service_title: str | None = None,
    contact_name: str | None = None,
) -> str:
    lines = [f"• {_field_label(str(f.get('field', '')))}" for f in missing_fields[:MAX_LISTED_FIELDS]]

    message = f"Hi{f' {contact_name}' if contact_name else ''}!\n\n"
    message += "We need some additional information for your service request"
    message += f": {service_title}" if service_title else ""
    message += ":\n\n" + "\n".join(lines)

    extra = len(missing_fields) - MAX_LISTED_FIELDS
    if extra > 0:
        message += f"\n\n...and {extra} more field(s)."

    message += "\n\nPlease reply with this information, or call us if you have questions.\n\nThank you!"
    return message


async def _append_outbound(
    db: AsyncSession,
    phone_number: str,
    body: str,
    sid: str,
    *,
    service_id: uuid.UUID | None,
    contact_id: uuid.UUID | None,
) -> SMSThread:
    now = datetime.now(timezone.utc)
    entry = {
        "id": f"msg-{uuid.uuid4().hex[:12]}",
        "direction": "outbound",
        "body": body,
        "status": "sent",
        "sent_at": now.isoformat(),
        "twilio_sid": sid,
    }

    async with _phone_lock(phone_number):
        stmt = (
            select(SMSThread)
            .where(SMSThread.phone_number == phone_number)
            .order_by(SMSThread.created_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        thread = (await db.execute(stmt)).scalar_one_or_none()

        if thread:
            thread.messages = [*(thread.messages or []), entry]
            thread.updated_at = func.now()
        else:
            thread = SMSThread(phone_number=phone_number, messages=[entry])
            db.add(thread)

        thread.status = "sent"
        thread.last_message_at = now
        if service_id:
            thread.service_id = service_id
        if contact_id:
            thread.contact_id = contact_id

        await db.commit()
        await db.refresh(thread)
    return thread


async def send_info_request(
    db: AsyncSession,
    phone_number: str,
    missing_fields: list[dict],
    *,
    service_id: uuid.UUID | None = None,
    contact_id: uuid.UUID | None = None,
    service_title: str | None = None,
    contact_name: str | None = None,
) -> SMSThread:
    """Send the request SMS, then record it on the number's thread."""
    body = build_info_request_message(
        missing_fields, service_title=service_title, contact_name=contact_name
    )
    sid = await messaging_svc.send_sms(phone_number, body)
    return await _append_outbound(
        db, phone_number, body, sid, service_id=service_id, contact_id=contact_id
    )


async def get_thread(db: AsyncSession, thread_id: uuid.UUID) -> SMSThread | None:
    stmt = select(SMSThread).where(SMSThread.id == thread_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def list_service_threads(db: AsyncSession, service_id: uuid.UUID) -> list[SMSThread]:
    stmt = (
        select(SMSThread)
        .where(SMSThread.service_id == service_id)
        .order_by(SMSThread.last_message_at.desc())
    )
    return list((await db.execute(stmt)).scalars().all())
