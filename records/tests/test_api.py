"""
Integration tests for the medical records API.

These go through the URL routes, permission classes and the project
exception handler, using DRF's APIClient within APITestCase.
"""
import uuid

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APITestCase

from ..models import MedicationEntry, User, VisitRecord


class MedicalRecordAPITests(APITestCase):
    def setUp(self) -> None:
        self.doctor = User.objects.create_user(username="doc-1", password="docpass", role="doctor")
        self.nurse = User.objects.create_user(username="nurse-1", password="nursepass", role="head nurse")
        self.student = User.objects.create_user(username="student-1", password="studentpass", role="student")
        self.payload = {
            "patientId": "student-1",
            "doctorId": "doc-1",
            "date": "2024-05-01",
            "height": 170,
            "weight": 68,
            "bloodPressure": "120/80",
            "medications": ["Paracetamol"],
            "vitalSigns": {"heartRate": 72},
        }

    def authenticate(self, user: User) -> APIClient:
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    def create_record(self, **overrides) -> dict:
        client = self.authenticate(self.doctor)
        response = client.post(reverse("medical_records"), {**self.payload, **overrides}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        return response.data

    def test_doctor_can_create_and_read_record(self):
        record = self.create_record()
        self.assertEqual(record["bmi"], 23.53)
        self.assertTrue(record["certificateEnabled"])
        self.assertEqual(record["vitalSigns"]["bloodPressure"], "120/80")

        client = self.authenticate(self.doctor)
        response = client.get(reverse("medical_record_detail", args=[record["id"]]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, record)

    def test_unknown_doctor_falls_back_to_head_nurse(self):
        record = self.create_record(doctorId="doc-99")
        self.assertEqual(record["doctorId"], "nurse-1")

    def test_validation_errors_use_normalized_body(self):
        client = self.authenticate(self.doctor)
        response = client.post(reverse("medical_records"), {"height": 170, "weight": 0}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data["ok"])
        self.assertEqual(response.data["error"]["code"], "validation_error")
        self.assertEqual(response.data["error"]["message"]["patientId"], ["missing patient"])
        self.assertEqual(response.data["error"]["message"]["weight"], ["invalid height/weight"])
        self.assertFalse(VisitRecord.objects.exists())

    def test_student_can_read_but_not_write(self):
        record = self.create_record()
        client = self.authenticate(self.student)

        response = client.get(reverse("patient_medical_records", args=["student-1"]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([r["id"] for r in response.data], [record["id"]])

        response = client.post(reverse("medical_records"), self.payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = client.delete(reverse("medical_record_detail", args=[record["id"]]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(VisitRecord.objects.count(), 1)

    def test_patch_only_touches_sent_fields(self):
        record = self.create_record()
        client = self.authenticate(self.nurse)
        response = client.patch(
            reverse("medical_record_detail", args=[record["id"]]),
            {"notes": "Follow up in a week", "medications": ["Ibuprofen", "ORS"]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["notes"], "Follow up in a week")
        self.assertEqual(response.data["medications"], ["Ibuprofen", "ORS"])
        self.assertEqual(response.data["bmi"], record["bmi"])
        self.assertEqual(response.data["vitalSigns"], record["vitalSigns"])

    def test_put_is_partial_too(self):
        record = self.create_record()
        client = self.authenticate(self.doctor)
        response = client.put(
            reverse("medical_record_detail", args=[record["id"]]), {"weight": 95}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["bmi"], 32.87)
        self.assertFalse(response.data["certificateEnabled"])
        self.assertEqual(response.data["medications"], record["medications"])

    def test_list_filters_by_patient_query(self):
        self.create_record(date="2024-01-01")
        self.create_record(date="2024-02-01")
        client = self.authenticate(self.doctor)

        response = client.get(reverse("medical_records"), {"patientId": "student-1"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([r["date"] for r in response.data], ["2024-02-01", "2024-01-01"])

        response = client.get(reverse("medical_records"), {"patientId": "someone-else"})
        self.assertEqual(response.data, [])

    def test_delete_record(self):
        record = self.create_record()
        client = self.authenticate(self.doctor)
        url = reverse("medical_record_detail", args=[record["id"]])

        response = client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"ok": True, "message": "Medical record deleted successfully"})
        self.assertFalse(MedicationEntry.objects.exists())

        response = client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_missing_record_returns_not_found(self):
        client = self.authenticate(self.doctor)
        for record_id in (str(uuid.uuid4()), "not-a-uuid"):
            response = client.get(reverse("medical_record_detail", args=[record_id]))
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
            self.assertEqual(response.data["error"]["code"], "not_found")

            response = client.patch(
                reverse("medical_record_detail", args=[record_id]), {"notes": "x"}, format="json"
            )
            self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
