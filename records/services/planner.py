"""
Change-set planning for visit-record writes.

The planner turns a validated payload into a :class:`ChangeSet` that the
writer applies verbatim. Child collections are treated asymmetrically:
medications and vaccinations are caller-owned complete lists and are
replaced wholesale, while the vital-signs snapshot is built up over time
and is merged field by field.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from records.models import VisitRecord
from records.services.derived import derive_fields

KEEP = 'keep'
REPLACE = 'replace'
MERGE = 'merge'
INSERT = 'insert'

# Payload keys copied onto the parent row as-is when present.
SCALAR_FIELDS = (
    'patient_id',
    'date',
    'height',
    'weight',
    'blood_pressure',
    'temperature',
    'diagnosis',
    'notes',
    'follow_up_date',
    'visit_type',
    'appointment_ref',
)

VITAL_FIELDS = ('heart_rate', 'blood_pressure', 'blood_glucose', 'respiratory_rate', 'oxygen_saturation')


@dataclass
class ChangeSet:
    fields: Dict[str, Any] = field(default_factory=dict)
    medications_action: str = KEEP
    medications: List[str] = field(default_factory=list)
    vaccinations_action: str = KEEP
    vaccinations: List[Dict[str, Any]] = field(default_factory=list)
    vital_signs_action: str = KEEP
    vital_signs: Dict[str, Any] = field(default_factory=dict)

    @property
    def changed_fields(self) -> List[str]:
        return sorted(self.fields)

    def summary(self) -> Dict[str, Any]:
        """Identifier-only description used for audit and logs."""
        return {
            'fields': self.changed_fields,
            'medications': self.medications_action,
            'vaccinations': self.vaccinations_action,
            'vitalSigns': self.vital_signs_action,
        }


def _vaccination_row(item: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'name': item['name'],
        'date_administered': item['date_administered'],
        'dose_number': item.get('dose_number') or 1,
        'manufacturer': item.get('manufacturer') or '',
        'lot_number': item.get('lot_number') or '',
        'administered_by': item.get('administered_by') or '',
        'notes': item.get('notes') or '',
    }


def _vital_values(vitals: Dict[str, Any], record_blood_pressure: Optional[str]) -> Dict[str, Any]:
    values = {k: vitals[k] for k in VITAL_FIELDS if k in vitals}
    if not values.get('blood_pressure') and record_blood_pressure:
        values['blood_pressure'] = record_blood_pressure
    return values


def plan_create(payload: Dict[str, Any], clinician_ref: str) -> ChangeSet:
    """Plan the insertion of a whole aggregate from a validated payload."""
    bmi, certificate = derive_fields(
        payload['height'], payload['weight'],
        payload.get('bmi'), payload.get('certificate_enabled'),
    )
    fields = {k: payload[k] for k in SCALAR_FIELDS if k in payload}
    fields.update(clinician_id=clinician_ref, bmi=bmi, certificate_enabled=certificate)
    if payload.get('id'):
        fields['id'] = payload['id']

    plan = ChangeSet(fields=fields)
    if payload.get('medications'):
        plan.medications_action = INSERT
        plan.medications = list(payload['medications'])
    if payload.get('vaccinations'):
        plan.vaccinations_action = INSERT
        plan.vaccinations = [_vaccination_row(v) for v in payload['vaccinations']]
    if payload.get('vital_signs') is not None:
        plan.vital_signs_action = INSERT
        plan.vital_signs = _vital_values(payload['vital_signs'], fields.get('blood_pressure'))
    return plan


def plan_update(record: VisitRecord, payload: Dict[str, Any], clinician_ref: Optional[str] = None,
                has_vital_signs: bool = False) -> ChangeSet:
    """Plan a partial update of ``record``.

    Only keys present in ``payload`` are considered. ``clinician_ref`` is
    the already-resolved clinician when the payload named one.
    ``has_vital_signs`` tells whether the record already owns a snapshot.
    """
    fields = {k: payload[k] for k in SCALAR_FIELDS if k in payload}
    if clinician_ref is not None:
        fields['clinician_id'] = clinician_ref

    if any(k in payload for k in ('height', 'weight', 'bmi')):
        height = payload.get('height', record.height)
        weight = payload.get('weight', record.weight)
        bmi, certificate = derive_fields(height, weight, payload.get('bmi'), payload.get('certificate_enabled'))
        fields['bmi'] = bmi
        fields['certificate_enabled'] = certificate
    elif payload.get('certificate_enabled') is not None:
        fields['certificate_enabled'] = payload['certificate_enabled']

    plan = ChangeSet(fields=fields)
    if 'medications' in payload:
        plan.medications_action = REPLACE
        plan.medications = list(payload['medications'])
    if 'vaccinations' in payload:
        plan.vaccinations_action = REPLACE
        plan.vaccinations = [_vaccination_row(v) for v in payload['vaccinations']]

    vitals = payload.get('vital_signs')
    if vitals is not None:
        if has_vital_signs:
            # Existing snapshots only inherit a blood pressure sent in this payload.
            values = _vital_values(vitals, payload.get('blood_pressure'))
            if values:
                plan.vital_signs_action = MERGE
                plan.vital_signs = values
        else:
            plan.vital_signs_action = INSERT
            plan.vital_signs = _vital_values(vitals, fields.get('blood_pressure', record.blood_pressure))
    return plan
