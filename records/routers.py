"""
URL mappings for the records API.

Paths mirror the medical-record routes the clinic front-end calls.
Trailing slashes are deliberately omitted.
"""
from django.urls import path

from .views.visits import medical_records, medical_record_detail, patient_medical_records

urlpatterns = [
    path('api/medical-records', medical_records, name='medical_records'),
    path('api/medical-records/patient/<str:patient_id>', patient_medical_records, name='patient_medical_records'),
    path('api/medical-records/<str:record_id>', medical_record_detail, name='medical_record_detail'),
]
