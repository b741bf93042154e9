from sqlalchemy.ext.asyncio import AsyncSession
from stocktrack.models.support.activity_models import ActivityLog
from stocktrack.constants.activity_templates import ACTIVITY_TEMPLATES
from stocktrack.constants.activity_codes import ActivityCode


async def emit_activity(
    db: AsyncSession,
    *,
    actor,
    code: ActivityCode,
    table_name: str | None = None,
    record_id: int | None = None,
    **context,
):
    """Queue an activity row on ``db``. The caller owns the commit."""
    template = ACTIVITY_TEMPLATES.get(code)
    if not template:
        raise ValueError(f"No activity template for code {code}")

    try:
        message = template.format(
            actor_role=actor.role.capitalize(),
            actor_name=actor.username,
            **context,
        )
    except KeyError as e:
        raise ValueError(
            f"Missing activity context key: {e.args[0]} for {code}"
        )

    db.add(
        ActivityLog(
            user_id=actor.id,
            username_snapshot=actor.username,
            action=code.value,
            table_name=table_name,
            record_id=record_id,
            message=message[:500],
        )
    )
