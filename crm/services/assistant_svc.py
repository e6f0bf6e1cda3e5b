"""CRM chat assistant: regex shortcuts for creating records, else an LLM reply."""

from __future__ import annotations

import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.contact import Contact
from ..models.pipeline import Deal
from ..models.task import Task
from . import contact_svc, pipeline_svc, task_svc, triage_svc

FALLBACK_REPLY = "Sorry, I could not generate a response."
CONTEXT_LIMIT = 10

_NAME_RE = re.compile(r"(?:name|called|named)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)", re.IGNORECASE)
_EMAIL_RE = re.compile(r"([a-zA-Z0-9._-]+@[a-zA-Z0-9._-]+\.[a-zA-Z0-9_-]+)", re.IGNORECASE)
_PHONE_RE = re.compile(r"(\+?[\d\s\-\(\)]{10,})")
_DEAL_TITLE_RE = re.compile(r"(?:deal|opportunity)[\s\w]+(?:called|named|for|about)\s+([^.!?]+)", re.IGNORECASE)
_VALUE_RE = re.compile(r"\$?([\d,]+)")
_TASK_TITLE_RE = re.compile(r"(?:task|todo)[\s\w]+(?:called|named|for|about|to)\s+([^.!?]+)", re.IGNORECASE)


def _contains(text: str, *words: str) -> bool:
    return any(w in text for w in words)


async def try_create_action(db: AsyncSession, message: str) -> str | None:
    """Handle "create/add/make ..." requests. Returns a confirmation or None."""
    lower = message.lower()
    if not _contains(lower, "create", "add", "make"):
        return None

    if _contains(lower, "contact", "person"):
        name = _NAME_RE.search(message)
        if not name:
            return None
        email = _EMAIL_RE.search(message)
        phone = _PHONE_RE.search(message)
        contact = await contact_svc.create_contact(
            db,
            name=name.group(1),
            email=email.group(1) if email else None,
            phone=phone.group(1) if phone else None,
        )
        return f"✅ Created contact: {contact.name}"

    if _contains(lower, "deal", "opportunity"):
        title = _DEAL_TITLE_RE.search(message)
        if not title:
            return None
        value = _VALUE_RE.search(message)
        stage = await pipeline_svc.first_stage(db)
        deal = await pipeline_svc.create_deal(
            db,
            title=title.group(1).strip(),
            value=float(value.group(1).replace(",", "") or 0) if value else 0.0,
            stage_id=stage.id if stage else None,
        )
        return f"✅ Created deal: {deal.title}"

    if _contains(lower, "task", "todo"):
        title = _TASK_TITLE_RE.search(message)
        if not title:
            return None
        task = await task_svc.create_task(db, title=title.group(1).strip(), completed=False)
        return f"✅ Created task: {task.title}"

    return None


async def _count_sample(db: AsyncSession, model) -> int:
    rows = (await db.execute(select(model.id).limit(CONTEXT_LIMIT))).scalars().all()
    return len(rows)


async def build_context(db: AsyncSession, message: str) -> str:
    contacts = await _count_sample(db, Contact)
    deals = await _count_sample(db, Deal)
    tasks = await _count_sample(db, Task)
    return f"""
You are an AI assistant for a CRM system. Here's the current state:

Contacts: {contacts} contacts
Deals: {deals} deals
Tasks: {tasks} tasks

You can help users:
1. Create contacts, deals, or tasks
2. Answer questions about their CRM data
3. Update existing records
4. Provide insights and suggestions

User query: {message}

Respond naturally and helpfully. If the user wants to create or modify data, acknowledge it and explain what you'll do.
"""


async def reply(db: AsyncSession, message: str, history: list[dict] | None = None) -> str:
    client = triage_svc.openai_client()

    created = await try_create_action(db, message)
    if created:
        return created

    messages = [{"role": "system", "content": await build_context(db, message)}]
    for turn in history or []:
        messages.append({
            "role": "user" if turn.get("role") == "user" else "assistant",
            "content": turn.get("content") or "",
        })
    messages.append({"role": "user", "content": message})

    completion = await client.chat.completions.create(
        model=settings.openai_model,
        messages=messages,
        max_tokens=500,
        temperature=0.7,
    )
    content = completion.choices[0].message.content if completion.choices else None
    return content or FALLBACK_REPLY
