from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from sqlalchemy.orm import Session

from staffops.models import AuditActorType, AuditLog
from staffops.security import CurrentUser

logger = logging.getLogger("staffops.audit")


def client_ip(request: Request) -> str | None:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def log_audit(
    db: Session,
    request: Request,
    *,
    actor: CurrentUser,
    action: str,
    entity_type: str,
    entity_id: str,
    details: dict[str, Any] | None = None,
) -> None:
    actor_type = AuditActorType.ADMIN if actor.is_admin else AuditActorType.STAFF
    request_id = getattr(request.state, "request_id", None)
    db.add(
        AuditLog(
            ts_utc=datetime.now(timezone.utc),
            actor_type=actor_type,
            actor_id=actor.user_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            ip=client_ip(request),
            user_agent=request.headers.get("user-agent"),
            success=True,
            details=details or {},
        )
    )
    try:
        db.commit()
    except Exception:
        # The audited change is already committed at this point.
        db.rollback()
        logger.exception(
            "audit_log_write_failed",
            extra={"request_id": request_id, "action": action, "actor_id": actor.user_id},
        )
        return

    logger.info(
        "audit_event",
        extra={
            "request_id": request_id,
            "action": action,
            "actor_type": actor_type.value,
            "actor_id": actor.user_id,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "details": details or {},
        },
    )
