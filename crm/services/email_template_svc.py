"""Email templates and {{variable}} helpers."""

from __future__ import annotations

import re
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.contact import Contact
from ..models.messaging import EmailTemplate
from ..models.pipeline import Deal

_VARIABLE_RE = re.compile(r"\{\{(\w+)\}\}")

AVAILABLE_VARIABLES = [
    {"key": "contact_name", "description": "Contact full name"},
    {"key": "contact_email", "description": "Contact email address"},
    {"key": "contact_phone", "description": "Contact phone number"},
    {"key": "company", "description": "Contact company name"},
    {"key": "deal_title", "description": "Deal title"},
    {"key": "deal_value", "description": "Deal value (formatted as currency)"},
    {"key": "deal_stage", "description": "Current pipeline stage"},
]


def replace_template_variables(template: str, variables: dict[str, str | None]) -> str:
    """Substitute known {{key}} placeholders; unknown ones are left alone."""
    result = template
    for key, value in variables.items():
        result = result.replace("{{" + key + "}}", value or "")
    return result


def extract_variables(template: str) -> list[str]:
    """Unique placeholder names in first-seen order."""
    seen: list[str] = []
    for name in _VARIABLE_RE.findall(template or ""):
        if name not in seen:
            seen.append(name)
    return seen


def build_template_variables(contact: Contact | None = None, deal: Deal | None = None) -> dict[str, str]:
    variables: dict[str, str] = {}
    if contact is not None:
        variables["contact_name"] = contact.name or ""
        variables["contact_email"] = contact.email or ""
        variables["contact_phone"] = contact.phone or ""
        variables["company"] = contact.company or ""
    if deal is not None:
        variables["deal_title"] = deal.title or ""
        variables["deal_value"] = f"${deal.value:.2f}" if deal.value else "$0.00"
        variables["deal_stage"] = deal.stage.name if deal.stage else ""
    return variables


def available_variables() -> list[dict[str, str]]:
    return [dict(v) for v in AVAILABLE_VARIABLES]


# ── CRUD ───────────────────────────────────────────────────────────────────

async def list_templates(db: AsyncSession, *, category: str | None = None) -> list[EmailTemplate]:
    stmt = select(EmailTemplate)
    if category:
        stmt = stmt.where(EmailTemplate.category == category)
    stmt = stmt.order_by(EmailTemplate.created_at.desc())
    return list((await db.execute(stmt)).scalars().all())


async def get_template(db: AsyncSession, template_id: uuid.UUID) -> EmailTemplate:
    stmt = select(EmailTemplate).where(EmailTemplate.id == template_id)
    return (await db.execute(stmt)).scalar_one()


async def create_template(
    db: AsyncSession,
    *,
    name: str,
    subject: str,
    body: str,
    category: str | None = None,
    variables: list[str] | None = None,
) -> EmailTemplate:
    template = EmailTemplate(
        name=name,
        subject=subject,
        body=body,
        category=category or "general",
        variables=variables if variables is not None else extract_variables(subject + "\n" + body),
    )
    db.add(template)
    await db.commit()
    await db.refresh(template)
    return template


async def update_template(db: AsyncSession, template_id: uuid.UUID, **kwargs) -> EmailTemplate:
    template = await get_template(db, template_id)
    for key, value in kwargs.items():
        setattr(template, key, value)
    template.updated_at = func.now()
    await db.commit()
    await db.refresh(template)
    return template


async def delete_template(db: AsyncSession, template_id: uuid.UUID) -> None:
    template = await get_template(db, template_id)
    await db.delete(template)
    await db.commit()
