import pytest
from django.db import DatabaseError

from records.exceptions import IdentityResolutionExhausted
from records.models import User
from records.services.identity import UserIdentityStore, resolve_clinician

pytestmark = pytest.mark.django_db


def test_existing_clinician_is_returned_unchanged(doctor, head_nurse):
    assert resolve_clinician('doc-1', UserIdentityStore()) == 'doc-1'


def test_unknown_clinician_falls_back_to_elevated_role(head_nurse):
    assert resolve_clinician('doc-99', UserIdentityStore()) == 'nurse-1'
    assert not User.objects.filter(username='self-recorded').exists()


def test_fallback_roles_are_tried_in_order(settings, head_nurse):
    User.objects.create_user(username='admin-1', password='P@ssw0rd1', role='admin')
    assert resolve_clinician('doc-99', UserIdentityStore()) == 'nurse-1'
    settings.CLINIC_FALLBACK_ROLES = ['admin', 'head nurse']
    assert resolve_clinician('doc-99', UserIdentityStore()) == 'admin-1'


def test_inactive_users_are_not_fallbacks(doctor):
    User.objects.create_user(username='nurse-9', password='P@ssw0rd1', role='head nurse', is_active=False)
    assert resolve_clinician('doc-99', UserIdentityStore()) == 'self-recorded'


def test_unknown_clinician_without_fallback_uses_sentinel(doctor):
    # doctors are not in the fallback class
    assert resolve_clinician('doc-99', UserIdentityStore()) == 'self-recorded'
    sentinel = User.objects.get(username='self-recorded')
    assert sentinel.role == User.ROLE_SYSTEM
    assert not sentinel.has_usable_password()


@pytest.mark.parametrize('candidate', [None, '', '   ', 'self-recorded'])
def test_empty_or_sentinel_candidate_bootstraps_sentinel_once(candidate):
    store = UserIdentityStore()
    assert resolve_clinician(candidate, store) == 'self-recorded'
    assert resolve_clinician(candidate, store) == 'self-recorded'
    assert User.objects.filter(username='self-recorded').count() == 1


def test_sentinel_name_comes_from_settings(settings):
    settings.CLINIC_SENTINEL_CLINICIAN = 'walk-in'
    assert resolve_clinician(None, UserIdentityStore()) == 'walk-in'
    assert User.objects.filter(username='walk-in', role='system').exists()


def test_failed_sentinel_bootstrap_is_surfaced(monkeypatch):
    def broken(*args, **kwargs):
        raise DatabaseError('users table is locked')

    monkeypatch.setattr(User.objects.__class__, 'get_or_create', broken)
    with pytest.raises(IdentityResolutionExhausted) as info:
        resolve_clinician(None, UserIdentityStore())
    assert isinstance(info.value.__cause__, DatabaseError)


def test_ensure_sentinel_command():
    from django.core.management import call_command

    call_command('ensure_sentinel_identity')
    call_command('ensure_sentinel_identity')
    assert User.objects.filter(username='self-recorded').count() == 1
