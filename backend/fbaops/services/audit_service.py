# Overview: Service-layer operations for the business audit log.

"""
Audit log service.

record() only adds the row to the current session; it is committed or
rolled back together with the change it describes.
"""

from __future__ import annotations

import json

from ..extensions import db
from ..models import AuditLog
from fbaops.time_utils import utcnow


def record(
    *,
    org_id: int,
    user_id: int | None,
    action: str,
    entity_type: str,
    entity_id: int | None,
    details: dict | None = None,
) -> AuditLog:
    entry = AuditLog(
        org_id=org_id,
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=json.dumps(details, sort_keys=True) if details else None,
        created_at=utcnow(),
    )
    db.session.add(entry)
    return entry


def list_entries(
    org_id: int,
    *,
    entity_type: str | None = None,
    entity_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[AuditLog], int]:
    """Newest first. Returns (entries, total)."""
    query = db.session.query(AuditLog).filter(AuditLog.org_id == org_id)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == entity_id)

    total = query.count()
    entries = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )
    return entries, total
