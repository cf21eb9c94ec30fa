"""
Database models for the clinic records backend.

A :class:`VisitRecord` is the aggregate root of one clinical visit. It
owns its medications, at most one vital-signs snapshot and its
vaccinations; none of those rows may outlive the record. Patients and
clinicians are both :class:`User` rows and are referenced by username so
that references such as ``"nurse-1"`` or ``"self-recorded"`` are stored
verbatim while the database still enforces that they exist.
"""
from __future__ import annotations

import uuid

from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models


def default_visit_type() -> str:
    return getattr(settings, 'CLINIC_DEFAULT_VISIT_TYPE', 'General Checkup')


class User(AbstractUser):
    """Custom user model carrying the clinic role.

    Patients (students and staff) and clinicians share this table. The
    ``system`` role is reserved for the sentinel identity that stands in
    when no real clinician applies.
    """
    ROLE_STUDENT = 'student'
    ROLE_STAFF = 'staff'
    ROLE_DOCTOR = 'doctor'
    ROLE_HEAD_NURSE = 'head nurse'
    ROLE_ADMIN = 'admin'
    ROLE_SYSTEM = 'system'
    ROLE_CHOICES = [
        (ROLE_STUDENT, 'Student'),
        (ROLE_STAFF, 'Staff'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_HEAD_NURSE, 'Head Nurse'),
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_SYSTEM, 'System'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_STUDENT, db_index=True)

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class VisitRecord(models.Model):
    """One medical visit: measurements, assessment and derived fields."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        User,
        to_field='username',
        on_delete=models.PROTECT,
        related_name='visit_records',
    )
    clinician = models.ForeignKey(
        User,
        to_field='username',
        on_delete=models.PROTECT,
        related_name='attended_visits',
    )
    date = models.DateField(db_index=True)
    height = models.FloatField(help_text="cm")
    weight = models.FloatField(help_text="kg")
    bmi = models.FloatField()
    blood_pressure = models.CharField(max_length=20, blank=True, null=True)
    temperature = models.FloatField(blank=True, null=True)
    diagnosis = models.TextField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    follow_up_date = models.DateField(blank=True, null=True)
    certificate_enabled = models.BooleanField(default=False)
    visit_type = models.CharField(max_length=100, default=default_visit_type)
    # Pass-through reference to the scheduling system; never dereferenced here.
    appointment_ref = models.CharField(max_length=64, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date', '-created_at']
        indexes = [
            models.Index(fields=['patient', 'date'], name='visit_patient_date_idx'),
        ]

    def __str__(self) -> str:
        return f"visit {self.id} p={self.patient_id} {self.date}"


class MedicationEntry(models.Model):
    record = models.ForeignKey(VisitRecord, on_delete=models.CASCADE, related_name='medications')
    name = models.CharField(max_length=255)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']

    def __str__(self) -> str:
        return f"{self.name} (record={self.record_id})"


class VitalSignsSnapshot(models.Model):
    record = models.OneToOneField(VisitRecord, on_delete=models.CASCADE, related_name='vital_signs')
    heart_rate = models.PositiveIntegerField(blank=True, null=True)
    blood_pressure = models.CharField(max_length=20, blank=True, null=True)
    blood_glucose = models.FloatField(blank=True, null=True)
    respiratory_rate = models.PositiveIntegerField(blank=True, null=True)
    oxygen_saturation = models.FloatField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"vitals record={self.record_id}"


class VaccinationEntry(models.Model):
    record = models.ForeignKey(VisitRecord, on_delete=models.CASCADE, related_name='vaccinations')
    name = models.CharField(max_length=255)
    date_administered = models.DateField()
    dose_number = models.PositiveIntegerField(default=1)
    manufacturer = models.CharField(max_length=255, blank=True, default='')
    lot_number = models.CharField(max_length=100, blank=True, default='')
    administered_by = models.CharField(max_length=150, blank=True, default='')
    notes = models.TextField(blank=True, default='')
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']

    def __str__(self) -> str:
        return f"{self.name} #{self.dose_number} (record={self.record_id})"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.object_type}/{self.object_id}"
