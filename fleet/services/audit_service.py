import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fleet.models.audit_log import AuditLog


logger = logging.getLogger(__name__)


def log_action(
    db: Session,
    user_id: Optional[int],
    action: str,
    entity_type: str,
    entity_id: Optional[int] = None,
    details: Optional[str] = None,
) -> Optional[AuditLog]:
    """
    Record a business action in the audit trail.

    Runs after the primary change has been committed; a failure here is
    logged and rolled back without surfacing to the caller.
    """
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )

    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError:
        logger.exception("Audit write failed: %s on %s %s", action, entity_type, entity_id)
        db.rollback()
        return None

    logger.debug("Audit %s on %s %s by user %s", action, entity_type, entity_id, user_id)
    return entry


def log_auth_event(
    db: Session,
    action: str,
    email: str,
    user_id: Optional[int] = None,
    details: Optional[str] = None,
) -> Optional[AuditLog]:
    message = f"Email: {email}" if not details else f"Email: {email} | {details}"

    return log_action(
        db=db,
        user_id=user_id,
        action=action,
        entity_type="Auth",
        entity_id=user_id,
        details=message,
    )
