"""
Medical record endpoints.

Each view parses the request, calls one operation from
:mod:`records.services.visits` and renders the composite record. Domain
errors are left to the project exception handler.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework import status

from ..exceptions import NotFoundError
from ..permissions import ClinicalWriteOrReadOnly
from ..services import visits


@api_view(['GET', 'POST'])
@permission_classes([ClinicalWriteOrReadOnly])
def medical_records(request):
    """List visit records (optionally ``?patientId=``) or create one."""
    if request.method == 'POST':
        record = visits.create_visit_record(request.data, actor=request.user)
        return Response(record, status=status.HTTP_201_CREATED)

    patient_id = request.query_params.get('patientId')
    if patient_id:
        return Response(visits.list_visit_records_by_patient(patient_id))
    return Response(visits.list_visit_records())


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([ClinicalWriteOrReadOnly])
def medical_record_detail(request, record_id: str):
    """Read, partially update or delete one visit record.

    ``PUT`` and ``PATCH`` both have partial-update semantics: keys absent
    from the body are left untouched.
    """
    if request.method == 'GET':
        record = visits.get_visit_record(record_id)
        if record is None:
            raise NotFoundError()
        return Response(record)

    if request.method == 'DELETE':
        if not visits.delete_visit_record(record_id, actor=request.user):
            raise NotFoundError()
        return Response({'ok': True, 'message': 'Medical record deleted successfully'})

    record = visits.update_visit_record(record_id, request.data, actor=request.user)
    return Response(record)


@api_view(['GET'])
@permission_classes([ClinicalWriteOrReadOnly])
def patient_medical_records(request, patient_id: str):
    return Response(visits.list_visit_records_by_patient(patient_id))
