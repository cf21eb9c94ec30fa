"""
Attending-clinician resolution.

A visit must always point at an identity that exists when the write
commits. Callers may send an unknown or empty clinician reference, so the
reference is resolved through a fallback chain:

1. the sentinel (or an empty reference) -> make sure the sentinel exists;
2. an existing identity -> used unchanged;
3. an unknown identity -> the first identity holding a fallback role;
4. no fallback identity -> the sentinel, as in step 1.

Resolution must run inside the write's ``transaction.atomic`` block, with
the store bound to the same database alias, so a clinician deleted before
commit surfaces as an integrity failure of that write.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DEFAULT_DB_ALIAS, DatabaseError

from records.exceptions import IdentityResolutionExhausted

logger = logging.getLogger(__name__)

User = get_user_model()


def sentinel_username() -> str:
    return settings.CLINIC_SENTINEL_CLINICIAN


def fallback_roles() -> list[str]:
    return list(settings.CLINIC_FALLBACK_ROLES)


class UserIdentityStore:
    """Identity store backed by the user table of one database alias."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def exists(self, ref: str) -> bool:
        return User.objects.using(self.using).filter(username=ref).exists()

    def find_by_role(self, roles: Sequence[str]) -> Optional[str]:
        """Return the username of the first active user holding one of
        ``roles``, trying the roles in order."""
        for role in roles:
            ref = (
                User.objects.using(self.using)
                .filter(role=role, is_active=True)
                .order_by('date_joined', 'pk')
                .values_list('username', flat=True)
                .first()
            )
            if ref:
                return ref
        return None

    def ensure_sentinel_exists(self) -> str:
        """Create the sentinel identity if it is missing (idempotent)."""
        username = sentinel_username()
        try:
            user, created = User.objects.db_manager(self.using).get_or_create(
                username=username,
                defaults={
                    'role': User.ROLE_SYSTEM,
                    'first_name': 'Self-recorded',
                    'is_active': False,
                },
            )
            if created:
                user.set_unusable_password()
                user.save(using=self.using, update_fields=['password'])
                logger.info("Bootstrapped sentinel clinician identity %s", username)
        except DatabaseError as exc:
            raise IdentityResolutionExhausted(f'cannot bootstrap sentinel identity {username!r}') from exc
        return user.username


def resolve_clinician(candidate: Optional[str], store: UserIdentityStore) -> str:
    """Return a clinician reference guaranteed to exist in ``store``."""
    candidate = (candidate or '').strip()
    if not candidate or candidate == sentinel_username():
        return store.ensure_sentinel_exists()

    if store.exists(candidate):
        return candidate

    fallback = store.find_by_role(fallback_roles())
    if fallback:
        logger.warning("Unknown clinician %s replaced by fallback identity %s", candidate, fallback)
        return fallback

    logger.warning("Unknown clinician %s and no fallback identity; using sentinel", candidate)
    return store.ensure_sentinel_exists()
