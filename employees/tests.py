import shutil
import tempfile
from datetime import datetime

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import override_settings
from django.utils import timezone
from rest_framework.test import APITestCase

from attendance.models import AttendanceEvent, Schedule
from attendance.services import check_in

from .models import Employee

MEDIA_ROOT = tempfile.mkdtemp()

# Smallest valid GIF
GIF_BYTES = (
    b'GIF89a\x01\x00\x01\x00\x80\x00\x00\x00\x00\x00\xff\xff\xff!\xf9\x04\x01\x00\x00\x00\x00'
    b',\x00\x00\x00\x00\x01\x00\x01\x00\x00\x02\x02D\x01\x00;'
)


@override_settings(MEDIA_ROOT=MEDIA_ROOT)
class EmployeeApiTests(APITestCase):
    @classmethod
    def tearDownClass(cls):
        shutil.rmtree(MEDIA_ROOT, ignore_errors=True)
        super().tearDownClass()

    def setUp(self):
        self.schedule = Schedule.objects.create(name='Matutino', start_time='08:00', end_time='17:00')
        self.employee = Employee.objects.create(
            id='EMP-1', name='Beatriz', area='Ventas', barcode='111', schedule=self.schedule
        )

    def test_list_is_ordered_by_name(self):
        Employee.objects.create(id='EMP-2', name='Alberto', area='Almacén', barcode='222')

        response = self.client.get('/api/employees')
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row['name'] for row in response.data], ['Alberto', 'Beatriz'])
        self.assertEqual(response.data[1]['scheduleId'], self.schedule.pk)
        self.assertNotIn('photo', response.data[1])

    def test_retrieve_and_not_found(self):
        response = self.client.get('/api/employees/EMP-1')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['barcode'], '111')

        response = self.client.get('/api/employees/nobody')
        self.assertEqual(response.status_code, 404)

    def test_create_requires_fields(self):
        response = self.client.post('/api/employees', {'name': 'Sin datos'}, format='json')
        self.assertEqual(response.status_code, 400)
        for field in ('id', 'area', 'barcode'):
            self.assertIn(field, response.data['errors'])

    def test_duplicate_id_or_barcode_is_rejected(self):
        response = self.client.post(
            '/api/employees', {'id': 'EMP-1', 'name': 'X', 'area': 'Y', 'barcode': '999'}, format='json'
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            '/api/employees', {'id': 'EMP-3', 'name': 'X', 'area': 'Y', 'barcode': '111'}, format='json'
        )
        self.assertEqual(response.status_code, 400)

    def test_create_multipart_with_photo_and_blank_schedule(self):
        photo = SimpleUploadedFile('face.gif', GIF_BYTES, content_type='image/gif')
        response = self.client.post(
            '/api/employees',
            {'id': 'EMP-5', 'name': 'Carla', 'area': 'Caja', 'barcode': '555', 'scheduleId': '', 'photo': photo},
            format='multipart',
        )

        self.assertEqual(response.status_code, 201)
        self.assertIsNone(response.data['scheduleId'])
        self.assertTrue(response.data['photoUrl'].startswith('/uploads/'))
        self.assertTrue(response.data['photoUrl'].endswith('.gif'))

    def test_photo_must_be_an_image(self):
        upload = SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')
        response = self.client.post(
            '/api/employees',
            {'id': 'EMP-6', 'name': 'D', 'area': 'E', 'barcode': '666', 'photo': upload},
            format='multipart',
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn('photo', response.data['errors'])

    @override_settings(EMPLOYEE_PHOTO_MAX_BYTES=10)
    def test_photo_size_limit(self):
        photo = SimpleUploadedFile('face.gif', GIF_BYTES, content_type='image/gif')
        response = self.client.post(
            '/api/employees',
            {'id': 'EMP-7', 'name': 'D', 'area': 'E', 'barcode': '777', 'photo': photo},
            format='multipart',
        )
        self.assertEqual(response.status_code, 400)

    def test_update_is_partial(self):
        response = self.client.put('/api/employees/EMP-1', {'area': 'Compras'}, format='json')
        self.assertEqual(response.status_code, 200)

        self.employee.refresh_from_db()
        self.assertEqual(self.employee.area, 'Compras')
        self.assertEqual(self.employee.name, 'Beatriz')
        self.assertEqual(self.employee.schedule, self.schedule)

    def test_update_can_clear_schedule(self):
        response = self.client.put('/api/employees/EMP-1', {'scheduleId': None}, format='json')
        self.assertEqual(response.status_code, 200)
        self.employee.refresh_from_db()
        self.assertIsNone(self.employee.schedule)

    def test_id_is_immutable(self):
        response = self.client.put('/api/employees/EMP-1', {'id': 'EMP-99'}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertTrue(Employee.objects.filter(pk='EMP-1').exists())
        self.assertFalse(Employee.objects.filter(pk='EMP-99').exists())

    def test_delete_keeps_ledger_rows(self):
        check_in('EMP-1', now=timezone.make_aware(datetime(2024, 5, 10, 8, 0)))

        response = self.client.delete('/api/employees/EMP-1')
        self.assertEqual(response.status_code, 204)
        self.assertFalse(Employee.objects.filter(pk='EMP-1').exists())
        self.assertEqual(AttendanceEvent.objects.filter(employee_id='EMP-1').count(), 1)

        response = self.client.get('/api/attendance', {'employeeId': 'EMP-1'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.data), 1)


class DepartmentApiTests(APITestCase):
    def test_distinct_sorted_areas(self):
        for i, area in enumerate(['Ventas', 'Almacén', 'Ventas', '']):
            Employee.objects.create(id=f'E{i}', name=f'N{i}', area=area, barcode=f'B{i}')

        response = self.client.get('/api/departments')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, ['Almacén', 'Ventas'])
