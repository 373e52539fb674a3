import logging

from django.db import DatabaseError

from .models import AuditLog

logger = logging.getLogger(__name__)


def create_audit_log(actor, action, entity, entity_id, before=None, after=None, metadata=None):
    """Record a change to an offer or landing. Failures are logged, never raised."""
    diff = {'before': before or None, 'after': after or None}
    if metadata:
        diff['metadata'] = metadata
    try:
        return AuditLog.objects.create(
            actor=actor if actor and actor.is_authenticated else None,
            action=action,
            entity=entity,
            entity_id=str(entity_id),
            diff=diff,
        )
    except (DatabaseError, TypeError, ValueError):
        logger.exception("Failed to create audit log for %s %s #%s", action, entity, entity_id)
        return None
