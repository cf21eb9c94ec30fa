"""
Read path: rebuild the composite visit record from its rows.

Assembly never writes. A record without a vital-signs snapshot or
without children yields ``None`` and empty lists respectively.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.db import DEFAULT_DB_ALIAS

from records.models import VisitRecord


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _vital_signs(record: VisitRecord) -> Optional[Dict[str, Any]]:
    try:
        vs = record.vital_signs
    except ObjectDoesNotExist:
        return None
    return {
        'heartRate': vs.heart_rate,
        'bloodPressure': vs.blood_pressure,
        'bloodGlucose': vs.blood_glucose,
        'respiratoryRate': vs.respiratory_rate,
        'oxygenSaturation': vs.oxygen_saturation,
    }


def assemble(record: VisitRecord) -> Dict[str, Any]:
    return {
        'id': str(record.pk),
        'patientId': record.patient_id,
        'doctorId': record.clinician_id,
        'date': _iso(record.date),
        'height': record.height,
        'weight': record.weight,
        'bmi': record.bmi,
        'bloodPressure': record.blood_pressure,
        'temperature': record.temperature,
        'diagnosis': record.diagnosis,
        'notes': record.notes,
        'followUpDate': _iso(record.follow_up_date),
        'certificateEnabled': bool(record.certificate_enabled),
        'visitType': record.visit_type,
        'appointmentId': record.appointment_ref,
        'createdAt': _iso(record.created_at),
        'updatedAt': _iso(record.updated_at),
        'medications': [m.name for m in record.medications.all()],
        'vitalSigns': _vital_signs(record),
        'vaccinations': [{
            'id': v.id,
            'name': v.name,
            'dateAdministered': _iso(v.date_administered),
            'doseNumber': v.dose_number,
            'manufacturer': v.manufacturer,
            'lotNumber': v.lot_number,
            'administeredBy': v.administered_by,
            'notes': v.notes,
        } for v in record.vaccinations.all()],
    }


def _queryset(using: str):
    return (
        VisitRecord.objects.using(using)
        .select_related('vital_signs')
        .prefetch_related('medications', 'vaccinations')
        .order_by('-date', '-created_at')
    )


def fetch_record(record_id, *, using: str = DEFAULT_DB_ALIAS) -> Optional[Dict[str, Any]]:
    """Composite record for ``record_id``, or ``None`` when there is none."""
    try:
        record = _queryset(using).filter(pk=record_id).first()
    except DjangoValidationError:
        # not a UUID, so it cannot match any record
        return None
    return assemble(record) if record else None


def fetch_records(*, patient_ref: Optional[str] = None, using: str = DEFAULT_DB_ALIAS) -> List[Dict[str, Any]]:
    """All composite records, or one patient's, newest visit first."""
    qs = _queryset(using)
    if patient_ref is not None:
        qs = qs.filter(patient_id=patient_ref)
    return [assemble(r) for r in qs]
