"""Automation dispatcher - finds automations for an event and runs their actions."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.automation import Automation, AutomationRun
from .actions import ACTION_HANDLERS, execute_action
from .context import TriggerContext

logger = logging.getLogger(__name__)

TRIGGER_TYPES = {
    "service_created",
    "service_updated",
    "contact_created",
    "deal_stage_changed",
    "task_completed",
}


def validate_actions(actions: object) -> str | None:
    """Return an error message when an action list is empty or malformed."""
    if not isinstance(actions, list) or not actions:
        return "actions must be a non-empty array"
    for action in actions:
        if not isinstance(action, dict) or not action.get("type"):
            return "Each action must have type and config"
        if not isinstance(action.get("config", {}), dict):
            return "Each action must have type and config"
        if action["type"] not in ACTION_HANDLERS:
            return f"Unknown action type: {action['type']}"
    return None


async def run_automation(
    db: AsyncSession, automation: Automation, trigger_data: dict
) -> AutomationRun:
    """Execute one automation's actions in order, recording an AutomationRun.

    Actions are best-effort: a failing action is recorded and the next one
    still runs. The run is `failed` when any action failed.
    """
    actions = list(automation.actions or [])
    automation_id = automation.id

    run = AutomationRun(automation_id=automation_id, status="pending", input_data=trigger_data)
    db.add(run)
    await db.commit()
    run_id = run.id

    run.status = "running"
    await db.commit()

    ctx = TriggerContext(trigger_data)
    results: list[dict] = []
    error: str | None = None
    try:
        for action in actions:
            results.append(
                await execute_action(action.get("type", ""), action.get("config") or {}, ctx, db)
            )
    except Exception as exc:
        logger.exception("Automation %s aborted", automation_id, extra={"automation_id": str(automation_id)})
        await db.rollback()
        error = str(exc)

    failures = [r for r in results if not r.get("success")]
    if error is None and failures:
        error = f"{len(failures)} of {len(actions)} actions failed"

    run = await db.get(AutomationRun, run_id)
    run.status = "failed" if error else "completed"
    run.output_data = {"results": results}
    run.error = error
    run.completed_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(run)

    logger.info(
        "Automation %s finished: %s",
        automation_id,
        run.status,
        extra={"automation_id": str(automation_id)},
    )
    return run


async def fire_trigger(
    db: AsyncSession,
    trigger_type: str,
    trigger_data: dict,
    organization_id: uuid.UUID | None = None,
) -> list[AutomationRun]:
    """Run every active automation whose trigger type and config match."""
    stmt = (
        select(Automation)
        .where(Automation.active.is_(True))
        .where(Automation.trigger_type == trigger_type)
        .order_by(Automation.created_at)
    )
    if organization_id:
        stmt = stmt.where(Automation.organization_id == organization_id)

    matched = [
        a.id
        for a in (await db.execute(stmt)).scalars().all()
        if TriggerContext(trigger_data).matches(a.trigger_config)
    ]

    runs = []
    for automation_id in matched:
        # A failed action rolls the session back, which expires loaded rows.
        automation = await db.get(Automation, automation_id)
        runs.append(await run_automation(db, automation, trigger_data))
    for run in runs[:-1]:
        await db.refresh(run)
    return runs
