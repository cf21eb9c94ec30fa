from typing import Optional, Any, Dict
from django.contrib.auth import get_user_model
from django.db import DEFAULT_DB_ALIAS
from records.models import AuditEvent

User = get_user_model()

def log_action(*, user: Optional[User], action: str, object_type: Optional[str]=None,
               object_id: Optional[str]=None, detail: Optional[Dict[str, Any]]=None,
               using: str=DEFAULT_DB_ALIAS) -> AuditEvent:
    """Record ``action`` in the audit trail on the ``using`` database.

    Called inside the unit of work of the write it describes, so a failed
    audit insert rolls the write back with it.
    """
    actor = user if isinstance(user, User) and user.pk else None
    return AuditEvent.objects.using(using).create(
        user=actor,
        action=action,
        object_type=object_type,
        object_id=str(object_id) if object_id is not None else None,
        detail=detail or {},
    )
