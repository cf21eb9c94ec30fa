import pytest

from records.models import User


@pytest.fixture
def patient(db):
    return User.objects.create_user(username='student-1', password='P@ssw0rd1', role='student')


@pytest.fixture
def doctor(db):
    return User.objects.create_user(username='doc-1', password='P@ssw0rd1', role='doctor')


@pytest.fixture
def head_nurse(db):
    return User.objects.create_user(username='nurse-1', password='P@ssw0rd1', role='head nurse')


@pytest.fixture
def visit_payload(patient, doctor):
    return {
        'patientId': patient.username,
        'doctorId': doctor.username,
        'date': '2024-05-01',
        'height': 170,
        'weight': 68,
        'bloodPressure': '120/80',
        'temperature': 36.6,
        'diagnosis': 'Healthy',
        'notes': 'Annual checkup',
        'followUpDate': '2025-05-01',
        'medications': ['Paracetamol', 'Vitamin C'],
        'vitalSigns': {'heartRate': 72, 'bloodGlucose': 5.4, 'respiratoryRate': 16, 'oxygenSaturation': 98},
        'vaccinations': [
            {
                'name': 'Hepatitis B',
                'dateAdministered': '2024-05-01',
                'doseNumber': 2,
                'manufacturer': 'GSK',
                'lotNumber': 'HB-221',
                'administeredBy': 'nurse-1',
                'notes': 'No reaction',
            },
        ],
    }
