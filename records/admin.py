"""
Django admin registrations for the records models.

Visit records are edited with their children inline so the whole
aggregate is visible on one page.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import (
    User,
    VisitRecord,
    MedicationEntry,
    VitalSignsSnapshot,
    VaccinationEntry,
    AuditEvent,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('username', 'role', 'first_name', 'last_name', 'is_active', 'is_staff')
    list_filter = ('role', 'is_active', 'is_staff')
    search_fields = ('username', 'first_name', 'last_name', 'email')
    fieldsets = BaseUserAdmin.fieldsets + (('Clinic', {'fields': ('role',)}),)


class MedicationInline(admin.TabularInline):
    model = MedicationEntry
    extra = 0


class VitalSignsInline(admin.StackedInline):
    model = VitalSignsSnapshot
    extra = 0
    max_num = 1


class VaccinationInline(admin.TabularInline):
    model = VaccinationEntry
    extra = 0


@admin.register(VisitRecord)
class VisitRecordAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'clinician', 'date', 'bmi', 'certificate_enabled', 'visit_type')
    list_filter = ('certificate_enabled', 'visit_type', 'date')
    search_fields = ('id', 'patient__username', 'clinician__username')
    readonly_fields = ('bmi', 'created_at', 'updated_at')
    inlines = [MedicationInline, VitalSignsInline, VaccinationInline]


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'object_type', 'object_id', 'user', 'created_at')
    list_filter = ('action',)
    search_fields = ('object_id', 'user__username')
