"""
Medical visit records: the operations exposed to the HTTP layer.

Writes run validate -> resolve clinician -> derive -> plan -> write, with
everything after validation inside a single unit of work. Reads go
straight to the assembler.
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List, Optional

from django.db import DEFAULT_DB_ALIAS

from records.exceptions import NotFoundError
from records.models import VisitRecord, VitalSignsSnapshot
from records.serializers.visit import validate_visit_payload
from records.services.assembler import fetch_record, fetch_records
from records.services.audit import log_action
from records.services.identity import UserIdentityStore, resolve_clinician
from records.services.planner import plan_create, plan_update
from records.services.writer import TransactionalWriter


def _parse_id(record_id) -> Optional[uuid.UUID]:
    if isinstance(record_id, uuid.UUID):
        return record_id
    try:
        return uuid.UUID(str(record_id))
    except ValueError:
        return None


def create_visit_record(data: Any, *, actor=None, using: str = DEFAULT_DB_ALIAS) -> Dict[str, Any]:
    payload = validate_visit_payload(data)
    writer = TransactionalWriter(using)
    with writer.unit_of_work('visit_create', payload.get('id')) as db:
        clinician = resolve_clinician(payload.get('clinician_id'), UserIdentityStore(db))
        plan = plan_create(payload, clinician)
        record = writer.create(plan)
        log_action(user=actor, action='visit_create', object_type='visit_record', object_id=record.pk,
                   detail=plan.summary(), using=db)
    return fetch_record(record.pk, using=using)


def get_visit_record(record_id, *, using: str = DEFAULT_DB_ALIAS) -> Optional[Dict[str, Any]]:
    return fetch_record(record_id, using=using)


def list_visit_records_by_patient(patient_ref: str, *, using: str = DEFAULT_DB_ALIAS) -> List[Dict[str, Any]]:
    return fetch_records(patient_ref=patient_ref, using=using)


def list_visit_records(*, using: str = DEFAULT_DB_ALIAS) -> List[Dict[str, Any]]:
    return fetch_records(using=using)


def update_visit_record(record_id, data: Any, *, actor=None, using: str = DEFAULT_DB_ALIAS) -> Dict[str, Any]:
    """Apply a partial update; absent payload keys leave the record as is.

    Raises :class:`NotFoundError` when ``record_id`` matches nothing.
    """
    record_id = _parse_id(record_id)
    if record_id is None:
        raise NotFoundError()
    payload = validate_visit_payload(data, partial=True)
    writer = TransactionalWriter(using)
    with writer.unit_of_work('visit_update', record_id) as db:
        record = VisitRecord.objects.using(db).filter(pk=record_id).first()
        if record is None:
            raise NotFoundError()
        clinician = None
        if 'clinician_id' in payload:
            clinician = resolve_clinician(payload['clinician_id'], UserIdentityStore(db))
        has_vitals = VitalSignsSnapshot.objects.using(db).filter(record=record).exists()
        plan = plan_update(record, payload, clinician, has_vital_signs=has_vitals)
        writer.update(record, plan)
        log_action(user=actor, action='visit_update', object_type='visit_record', object_id=record.pk,
                   detail=plan.summary(), using=db)
    return fetch_record(record_id, using=using)


def delete_visit_record(record_id, *, actor=None, using: str = DEFAULT_DB_ALIAS) -> bool:
    record_id = _parse_id(record_id)
    if record_id is None:
        return False
    writer = TransactionalWriter(using)
    with writer.unit_of_work('visit_delete', record_id) as db:
        deleted = writer.delete(record_id)
        if deleted:
            log_action(user=actor, action='visit_delete', object_type='visit_record', object_id=record_id,
                       using=db)
    return deleted
