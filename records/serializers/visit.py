"""
Input schema for medical visit records.

Payload keys are camelCase, as sent by the clinic front-end; ``source``
maps each of them onto the model attribute it feeds. The same schema
serves create (all required fields enforced) and update
(``partial=True``: only keys present in the payload come back).
"""
from __future__ import annotations

from typing import Any, Mapping

import bleach
from django.utils import timezone
from rest_framework import serializers

from records.exceptions import ValidationError
from records.services.derived import coerce_bool, coerce_positive

MISSING_PATIENT = 'missing patient'
INVALID_MEASURE = 'invalid height/weight'


class PositiveMeasureField(serializers.Field):
    """Height or weight: anything that parses as a finite number > 0."""
    default_error_messages = {
        'required': INVALID_MEASURE,
        'null': INVALID_MEASURE,
        'invalid': INVALID_MEASURE,
    }

    def to_internal_value(self, data):
        number = coerce_positive(data)
        if number is None:
            self.fail('invalid')
        return number

    def to_representation(self, value):
        return value


class LenientBMIField(serializers.Field):
    """Supplied BMI. Unusable values become ``None`` so the BMI is derived."""

    def to_internal_value(self, data):
        return coerce_positive(data)

    def to_representation(self, value):
        return value


class CoercedBooleanField(serializers.Field):
    def to_internal_value(self, data):
        return coerce_bool(data)

    def to_representation(self, value):
        return bool(value)


class SanitizedCharField(serializers.CharField):
    """Clinician free text on the visit row, with markup stripped by bleach."""
    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return bleach.clean(value, strip=True)


class VitalSignsInputSerializer(serializers.Serializer):
    heartRate = serializers.IntegerField(source='heart_rate', min_value=0, required=False, allow_null=True)
    bloodPressure = serializers.CharField(source='blood_pressure', max_length=20, required=False,
                                          allow_blank=True, allow_null=True)
    bloodGlucose = serializers.FloatField(source='blood_glucose', min_value=0, required=False, allow_null=True)
    respiratoryRate = serializers.IntegerField(source='respiratory_rate', min_value=0, required=False,
                                               allow_null=True)
    oxygenSaturation = serializers.FloatField(source='oxygen_saturation', min_value=0, max_value=100,
                                              required=False, allow_null=True)


class VaccinationInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    dateAdministered = serializers.DateField(source='date_administered')
    doseNumber = serializers.IntegerField(source='dose_number', min_value=1, required=False)
    manufacturer = serializers.CharField(max_length=255, required=False, allow_blank=True)
    lotNumber = serializers.CharField(source='lot_number', max_length=100, required=False, allow_blank=True)
    administeredBy = serializers.CharField(source='administered_by', max_length=150, required=False,
                                           allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        # Partial parents skip required checks on nested fields; a vaccination
        # is always submitted whole, so enforce them here.
        errors = {}
        if not attrs.get('name'):
            errors['name'] = 'This field is required.'
        if not attrs.get('date_administered'):
            errors['dateAdministered'] = 'This field is required.'
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class VisitRecordInputSerializer(serializers.Serializer):
    id = serializers.UUIDField(required=False)
    patientId = serializers.CharField(
        source='patient_id',
        max_length=150,
        error_messages={'required': MISSING_PATIENT, 'blank': MISSING_PATIENT, 'null': MISSING_PATIENT},
    )
    doctorId = serializers.CharField(source='clinician_id', max_length=150, required=False,
                                     allow_blank=True, allow_null=True)
    date = serializers.DateField(required=False)
    height = PositiveMeasureField()
    weight = PositiveMeasureField()
    bmi = LenientBMIField(required=False, allow_null=True)
    bloodPressure = serializers.CharField(source='blood_pressure', max_length=20, required=False,
                                          allow_blank=True, allow_null=True)
    temperature = serializers.FloatField(required=False, allow_null=True)
    diagnosis = SanitizedCharField(required=False, allow_blank=True, allow_null=True)
    notes = SanitizedCharField(required=False, allow_blank=True, allow_null=True)
    followUpDate = serializers.DateField(source='follow_up_date', required=False, allow_null=True)
    certificateEnabled = CoercedBooleanField(source='certificate_enabled', required=False, allow_null=True)
    visitType = SanitizedCharField(source='visit_type', max_length=100, required=False)
    appointmentId = serializers.CharField(source='appointment_ref', max_length=64, required=False,
                                          allow_blank=True, allow_null=True)
    medications = serializers.ListField(child=serializers.CharField(max_length=255), required=False)
    vitalSigns = VitalSignsInputSerializer(source='vital_signs', required=False, allow_null=True)
    vaccinations = VaccinationInputSerializer(many=True, required=False)

    def validate(self, attrs):
        if not self.partial:
            attrs.setdefault('date', timezone.localdate())
        return attrs


def validate_visit_payload(data: Any, *, partial: bool = False) -> dict:
    """Run every check on ``data`` and return the typed payload.

    Raises :class:`records.exceptions.ValidationError` carrying all field
    errors at once; nothing is written before this returns.
    """
    s = VisitRecordInputSerializer(data=data, partial=partial)
    if not s.is_valid():
        raise ValidationError(s.errors)
    return _plain(s.validated_data)


def _plain(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value
