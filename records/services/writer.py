"""
Atomic application of visit-record change sets.

:class:`TransactionalWriter` is the only code that mutates persisted
visit aggregates. Every create, update and delete runs inside one
:meth:`TransactionalWriter.unit_of_work` block: a ``transaction.atomic``
bound to the writer's database alias that is committed on success and
rolled back on every other exit path.

No row lock or version check is taken. Two concurrent updates of the same
record both commit and the later one wins for overlapping fields.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from django.db import DEFAULT_DB_ALIAS, connections, transaction
from django.utils import timezone

from records.exceptions import (
    IdentityResolutionExhausted,
    NotFoundError,
    TransactionError,
    ValidationError,
)
from records.models import AuditEvent, MedicationEntry, VaccinationEntry, VisitRecord, VitalSignsSnapshot
from records.services.planner import INSERT, MERGE, REPLACE, ChangeSet

logger = logging.getLogger(__name__)

# Raised deliberately inside a unit of work; they roll it back but reach
# the caller unchanged.
PASSTHROUGH_ERRORS = (ValidationError, NotFoundError, IdentityResolutionExhausted, TransactionError)

# Tables whose deferred foreign keys are checked before a unit of work ends.
CHECKED_MODELS = (VisitRecord, MedicationEntry, VitalSignsSnapshot, VaccinationEntry, AuditEvent)


class TransactionalWriter:
    """Writes visit aggregates; the database alias is the unit-of-work handle."""

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    @contextmanager
    def unit_of_work(self, action: str, record_id: Optional[str] = None) -> Iterator[str]:
        """Run the block atomically and yield the database alias to use.

        Failures other than the domain errors are wrapped in
        :class:`TransactionError` with the original exception chained.
        """
        try:
            with transaction.atomic(using=self.using):
                yield self.using
                # A nested atomic is only a savepoint, so deferred foreign keys
                # would otherwise be checked at the outer commit.
                self._check_constraints()
        except PASSTHROUGH_ERRORS:
            logger.warning("%s rolled back (record=%s)", action, record_id)
            raise
        except Exception as exc:
            logger.error("%s failed and was rolled back (record=%s)", action, record_id, exc_info=True)
            raise TransactionError(f'{action} failed: {exc}') from exc

    def _check_constraints(self) -> None:
        connections[self.using].check_constraints(
            table_names=[model._meta.db_table for model in CHECKED_MODELS]
        )

    # ------------------------------------------------------------------
    # child collections
    # ------------------------------------------------------------------
    def _insert_medications(self, record: VisitRecord, names) -> None:
        MedicationEntry.objects.using(self.using).bulk_create([
            MedicationEntry(record=record, name=name, position=i) for i, name in enumerate(names)
        ])

    def _insert_vaccinations(self, record: VisitRecord, rows) -> None:
        VaccinationEntry.objects.using(self.using).bulk_create([
            VaccinationEntry(record=record, position=i, **row) for i, row in enumerate(rows)
        ])

    def _merge_vital_signs(self, record: VisitRecord, values: dict) -> None:
        VitalSignsSnapshot.objects.using(self.using).filter(record=record).update(
            updated_at=timezone.now(), **values
        )

    def _insert_vital_signs(self, record: VisitRecord, values: dict) -> None:
        VitalSignsSnapshot.objects.using(self.using).create(record=record, **values)

    def _apply_children(self, record: VisitRecord, plan: ChangeSet) -> None:
        if plan.medications_action == REPLACE:
            MedicationEntry.objects.using(self.using).filter(record=record).delete()
        if plan.medications_action in (INSERT, REPLACE):
            self._insert_medications(record, plan.medications)

        if plan.vaccinations_action == REPLACE:
            VaccinationEntry.objects.using(self.using).filter(record=record).delete()
        if plan.vaccinations_action in (INSERT, REPLACE):
            self._insert_vaccinations(record, plan.vaccinations)

        if plan.vital_signs_action == MERGE:
            self._merge_vital_signs(record, plan.vital_signs)
        elif plan.vital_signs_action == INSERT:
            self._insert_vital_signs(record, plan.vital_signs)

    # ------------------------------------------------------------------
    # aggregate operations (call inside unit_of_work)
    # ------------------------------------------------------------------
    def create(self, plan: ChangeSet) -> VisitRecord:
        record = VisitRecord(**plan.fields)
        record.save(using=self.using, force_insert=True)
        self._apply_children(record, plan)
        logger.info("Created visit record %s for patient %s", record.pk, record.patient_id)
        return record

    def update(self, record: VisitRecord, plan: ChangeSet) -> VisitRecord:
        for name, value in plan.fields.items():
            setattr(record, name, value)
        update_fields = {VisitRecord._meta.get_field(name).name for name in plan.fields}
        # updated_at moves even when only children change
        update_fields.add('updated_at')
        record.save(using=self.using, update_fields=sorted(update_fields))
        self._apply_children(record, plan)
        logger.info("Updated visit record %s: %s", record.pk, plan.summary())
        return record

    def _delete_record(self, record_id) -> int:
        deleted, _ = VisitRecord.objects.using(self.using).filter(pk=record_id).delete()
        return deleted

    def delete(self, record_id) -> bool:
        """Delete the children then the parent. ``False`` when absent."""
        MedicationEntry.objects.using(self.using).filter(record_id=record_id).delete()
        VitalSignsSnapshot.objects.using(self.using).filter(record_id=record_id).delete()
        VaccinationEntry.objects.using(self.using).filter(record_id=record_id).delete()
        deleted = self._delete_record(record_id)
        if deleted:
            logger.info("Deleted visit record %s", record_id)
        return bool(deleted)
