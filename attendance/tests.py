from datetime import date, datetime, timedelta
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.exceptions import ValidationError
from rest_framework.test import APITestCase

from employees.models import Employee

from .exceptions import CheckInCooldown, DayComplete, EmployeeNotFound, LedgerConflict
from .models import AttendanceDay, AttendanceEvent, Schedule
from .services import (
    EVENT_SEQUENCE,
    check_in,
    format_worked_time,
    get_today_stats,
    list_attendance,
    run_auto_checkouts,
)

DAY = date(2024, 5, 10)


def local_dt(hour, minute=0, second=0, day=DAY, microsecond=0):
    return timezone.make_aware(datetime(day.year, day.month, day.day, hour, minute, second, microsecond))


def make_employee(employee_id="EMP-1", barcode=None, **extra):
    return Employee.objects.create(
        id=employee_id,
        name=extra.pop("name", f"Employee {employee_id}"),
        area=extra.pop("area", "Operaciones"),
        barcode=barcode or f"BC-{employee_id}",
        **extra,
    )

def seed_event(employee, sequence, when, day=DAY):
    """Write a ledger row directly, the way imports and corrections do."""
    event_type, label = EVENT_SEQUENCE[sequence]
    return AttendanceEvent.objects.create(
        employee=employee,
        timestamp=when,
        type=event_type,
        date=day,
        sequence=sequence,
        notes=f"{label} via scanner",
    )



class CheckInStateMachineTests(TestCase):
    def setUp(self):
        self.employee = make_employee()

    def test_six_scans_follow_the_daily_sequence(self):
        results = [check_in(self.employee.id, now=local_dt(8 + i)) for i in range(6)]

        self.assertEqual([r.event.type for r in results], [t for t, _ in EVENT_SEQUENCE])
        self.assertEqual([r.label for r in results], [label for _, label in EVENT_SEQUENCE])
        self.assertEqual([r.event.sequence for r in results], list(range(6)))
        for result in results:
            self.assertEqual(result.event.date, DAY)
            self.assertFalse(result.event.is_automatic)
            self.assertEqual(result.event.notes, f"{result.label} via scanner")

        state = AttendanceDay.objects.get(employee=self.employee, date=DAY)
        self.assertEqual(state.position, 6)
        self.assertEqual(state.last_event_type, AttendanceEvent.TYPE_SALIDA_GENERAL)

    def test_seventh_scan_fails_with_day_complete(self):
        for i in range(6):
            check_in(self.employee.id, now=local_dt(8 + i))

        with self.assertRaises(DayComplete):
            check_in(self.employee.id, now=local_dt(15))
        self.assertEqual(AttendanceEvent.objects.filter(employee=self.employee, date=DAY).count(), 6)

    def test_non_final_events_report_zero_hours(self):
        result = check_in(self.employee.id, now=local_dt(8))
        self.assertEqual(result.hours_worked, "0h 0m")

    def test_final_event_reports_worked_time_since_entrada(self):
        check_in(self.employee.id, now=local_dt(8, 0, 0))
        for hour in (10, 11, 13, 14):
            check_in(self.employee.id, now=local_dt(hour))
        result = check_in(self.employee.id, now=local_dt(17, 32, 15))

        self.assertEqual(result.event.type, AttendanceEvent.TYPE_SALIDA_GENERAL)
        self.assertEqual(result.hours_worked, "9h 32m")

    def test_scan_within_cooldown_is_rejected_with_remaining_seconds(self):
        check_in(self.employee.id, now=local_dt(8))

        with self.assertRaises(CheckInCooldown) as ctx:
            check_in(self.employee.id, now=local_dt(8, 0, 10))
        self.assertEqual(ctx.exception.retry_after, 20)
        self.assertIn("20 segundos", str(ctx.exception.detail))

        with self.assertRaises(CheckInCooldown) as ctx:
            check_in(self.employee.id, now=local_dt(8, 0, 29, microsecond=500000))
        self.assertEqual(ctx.exception.retry_after, 1)
        self.assertEqual(AttendanceEvent.objects.filter(employee=self.employee).count(), 1)

    def test_scan_at_exactly_thirty_seconds_succeeds(self):
        check_in(self.employee.id, now=local_dt(8))
        result = check_in(self.employee.id, now=local_dt(8, 0, 30))
        self.assertEqual(result.event.type, AttendanceEvent.TYPE_SALIDA_DESAYUNO)

    def test_unknown_employee_is_not_found(self):
        with self.assertRaises(EmployeeNotFound):
            check_in("ghost", now=local_dt(8))
        self.assertFalse(AttendanceDay.objects.exists())

    def test_blank_employee_id_is_a_validation_error(self):
        for value in (None, "", "   "):
            with self.assertRaises(ValidationError):
                check_in(value, now=local_dt(8))

    def test_check_in_keys_on_id_not_barcode(self):
        employee = make_employee("EMP-2", barcode="7501234567890")

        result = check_in("EMP-2", now=local_dt(8))
        self.assertEqual(result.employee, employee)
        with self.assertRaises(EmployeeNotFound):
            check_in("7501234567890", now=local_dt(9))

    def test_days_are_tracked_independently(self):
        check_in(self.employee.id, now=local_dt(8))
        result = check_in(self.employee.id, now=local_dt(8, day=DAY + timedelta(days=1)))
        self.assertEqual(result.event.type, AttendanceEvent.TYPE_ENTRADA)
        self.assertEqual(result.event.date, DAY + timedelta(days=1))

    def test_naive_now_is_interpreted_in_local_time(self):
        result = check_in(self.employee.id, now=datetime(2024, 5, 10, 23, 30))
        self.assertEqual(result.event.date, DAY)

    def test_ledger_rows_without_day_state_are_counted(self):
        seed_event(self.employee, 0, local_dt(7))

        result = check_in(self.employee.id, now=local_dt(8))
        self.assertEqual(result.event.type, AttendanceEvent.TYPE_SALIDA_DESAYUNO)
        self.assertEqual(result.event.sequence, 1)
        self.assertEqual(AttendanceDay.objects.get(employee=self.employee, date=DAY).position, 2)

    def test_cooldown_uses_latest_ledger_timestamp(self):
        seed_event(self.employee, 0, local_dt(7, 59, 50))

        with self.assertRaises(CheckInCooldown) as ctx:
            check_in(self.employee.id, now=local_dt(8))
        self.assertEqual(ctx.exception.retry_after, 20)

    def test_removed_scan_frees_its_slot(self):
        for i in range(5):
            check_in(self.employee.id, now=local_dt(8 + i))
        AttendanceEvent.objects.get(employee=self.employee, date=DAY, sequence=4).delete()

        result = check_in(self.employee.id, now=local_dt(13))
        self.assertEqual(result.event.type, AttendanceEvent.TYPE_ENTRADA_COMIDA)
        result = check_in(self.employee.id, now=local_dt(14))
        self.assertEqual(result.event.type, AttendanceEvent.TYPE_SALIDA_GENERAL)

    def test_gap_in_ledger_raises_conflict(self):
        seed_event(self.employee, 0, local_dt(7))
        seed_event(self.employee, 2, local_dt(7, 30))

        with self.assertRaises(LedgerConflict):
            check_in(self.employee.id, now=local_dt(8))
        self.assertEqual(AttendanceEvent.objects.filter(employee=self.employee, date=DAY).count(), 2)

    def test_scan_after_auto_checkout_is_rejected(self):
        check_in(self.employee.id, now=local_dt(8))
        run_auto_checkouts(now=local_dt(22))

        with self.assertRaises(DayComplete):
            check_in(self.employee.id, now=local_dt(22, 5))


class WorkedTimeFormatTests(TestCase):
    def test_floors_minutes(self):
        self.assertEqual(format_worked_time(timedelta(hours=9, minutes=32, seconds=15)), "9h 32m")
        self.assertEqual(format_worked_time(timedelta(seconds=59)), "0h 0m")

    def test_negative_elapsed_is_zero(self):
        self.assertEqual(format_worked_time(timedelta(minutes=-5)), "0h 0m")


class AutoCheckoutTests(TestCase):
    def setUp(self):
        self.employee = make_employee()

    def test_before_cutoff_is_a_noop(self):
        check_in(self.employee.id, now=local_dt(8))

        self.assertEqual(run_auto_checkouts(now=local_dt(21, 59)), [])
        self.assertFalse(AttendanceEvent.objects.filter(type=AttendanceEvent.TYPE_AUTO_CHECKOUT).exists())

    def test_at_cutoff_closes_open_day_once(self):
        check_in(self.employee.id, now=local_dt(8))

        created = run_auto_checkouts(now=local_dt(22))
        self.assertEqual(len(created), 1)
        event = created[0]
        self.assertEqual(event.type, AttendanceEvent.TYPE_AUTO_CHECKOUT)
        self.assertTrue(event.is_automatic)
        self.assertIsNone(event.sequence)
        self.assertEqual(event.date, DAY)
        self.assertEqual(event.notes, "Registro automático generado por el sistema")
        self.assertTrue(AttendanceDay.objects.get(employee=self.employee, date=DAY).closed_automatically)

        self.assertEqual(run_auto_checkouts(now=local_dt(22, 1)), [])
        self.assertEqual(AttendanceEvent.objects.filter(type=AttendanceEvent.TYPE_AUTO_CHECKOUT).count(), 1)

    def test_mid_sequence_day_is_closed(self):
        for i in range(3):
            check_in(self.employee.id, now=local_dt(8 + i))
        self.assertEqual(len(run_auto_checkouts(now=local_dt(23))), 1)

    def test_completed_day_is_left_alone(self):
        for i in range(6):
            check_in(self.employee.id, now=local_dt(8 + i))
        self.assertEqual(run_auto_checkouts(now=local_dt(22)), [])

    def test_deleted_employee_is_not_checked_out(self):
        check_in(self.employee.id, now=local_dt(8))
        self.employee.delete()

        self.assertEqual(run_auto_checkouts(now=local_dt(22)), [])
        self.assertFalse(AttendanceEvent.objects.filter(type=AttendanceEvent.TYPE_AUTO_CHECKOUT).exists())

    def test_employee_without_entrada_is_skipped(self):
        make_employee("EMP-2")
        self.assertEqual(run_auto_checkouts(now=local_dt(22)), [])

    @override_settings(ATTENDANCE_AUTO_CHECKOUT_HOUR=20)
    def test_cutoff_hour_is_configurable(self):
        check_in(self.employee.id, now=local_dt(8))
        self.assertEqual(len(run_auto_checkouts(now=local_dt(20))), 1)

    def test_management_command(self):
        check_in(self.employee.id, now=local_dt(8))
        out = StringIO()

        call_command("run_auto_checkouts", at="2024-05-10T22:00:00", stdout=out)
        self.assertIn("1 event(s) created", out.getvalue())

        call_command("run_auto_checkouts", at="2024-05-10T22:30:00", stdout=out)
        self.assertIn("0 event(s) created", out.getvalue())


class DailyStatsTests(TestCase):
    def test_counts_entries_and_departures(self):
        a = make_employee("A")
        b = make_employee("B")
        check_in(a.id, now=local_dt(8))
        check_in(b.id, now=local_dt(8))
        for i in range(1, 6):
            check_in(b.id, now=local_dt(8 + i))

        stats = get_today_stats(today=DAY)
        self.assertEqual((stats.check_ins, stats.check_outs, stats.active_employees), (2, 1, 1))

    def test_auto_checkouts_count_as_departures(self):
        a = make_employee("A")
        check_in(a.id, now=local_dt(8))
        run_auto_checkouts(now=local_dt(22))

        stats = get_today_stats(today=DAY)
        self.assertEqual((stats.check_ins, stats.check_outs, stats.active_employees), (1, 1, 0))

    def test_empty_day(self):
        stats = get_today_stats(today=DAY)
        self.assertEqual((stats.check_ins, stats.check_outs, stats.active_employees), (0, 0, 0))


class LedgerQueryTests(TestCase):
    def setUp(self):
        self.a = make_employee("A")
        self.b = make_employee("B")
        check_in(self.a.id, now=local_dt(8, day=DAY - timedelta(days=1)))
        check_in(self.a.id, now=local_dt(8))
        check_in(self.b.id, now=local_dt(9))

    def test_filters_apply_independently(self):
        self.assertEqual(list_attendance().count(), 3)
        self.assertEqual(list_attendance(start_date=DAY).count(), 2)
        self.assertEqual(list_attendance(end_date=DAY - timedelta(days=1)).count(), 1)
        self.assertEqual(list_attendance(employee_id="A").count(), 2)
        self.assertEqual(list_attendance(start_date=DAY, employee_id="A").count(), 1)

    def test_results_are_newest_first(self):
        timestamps = list(list_attendance().values_list("timestamp", flat=True))
        self.assertEqual(timestamps, sorted(timestamps, reverse=True))


class CheckInApiTests(APITestCase):
    def setUp(self):
        cache.clear()
        self.employee = make_employee("EMP-1", barcode="7501234567890")

    def test_first_scan_creates_entrada(self):
        response = self.client.post("/api/checkin", {"employeeId": "EMP-1"}, format="json")

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["type"], "entrada")
        self.assertEqual(response.data["message"], "Entrada exitosa")
        self.assertEqual(response.data["hoursWorked"], "0h 0m")
        self.assertEqual(response.data["employee"]["id"], "EMP-1")
        self.assertEqual(response.data["attendance"]["employeeId"], "EMP-1")
        self.assertEqual(response.data["attendance"]["sequence"], 0)
        self.assertFalse(response.data["attendance"]["isAutomatic"])

    def test_second_scan_within_cooldown_is_rejected(self):
        self.client.post("/api/checkin", {"employeeId": "EMP-1"}, format="json")
        response = self.client.post("/api/checkin", {"employeeId": "EMP-1"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.data["message"].startswith("Por favor espera"))
        self.assertGreaterEqual(response.data["retryAfter"], 1)
        self.assertLessEqual(response.data["retryAfter"], 30)
        self.assertEqual(response["Retry-After"], str(response.data["retryAfter"]))

    def test_missing_employee_id(self):
        response = self.client.post("/api/checkin", {}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "Employee ID is required")

    def test_unknown_employee(self):
        response = self.client.post("/api/checkin", {"employeeId": "ghost"}, format="json")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["message"], "Employee not found")

    def test_completed_day(self):
        start = timezone.now() - timedelta(hours=1)
        for sequence in range(6):
            seed_event(self.employee, sequence, start + timedelta(minutes=sequence), day=timezone.localdate())
        response = self.client.post("/api/checkin", {"employeeId": "EMP-1"}, format="json")

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["message"], "Ya se han completado todos los registros del día")

    def test_gap_in_ledger_is_a_conflict(self):
        start = timezone.now() - timedelta(hours=1)
        seed_event(self.employee, 0, start, day=timezone.localdate())
        seed_event(self.employee, 2, start + timedelta(minutes=5), day=timezone.localdate())

        response = self.client.post("/api/checkin", {"employeeId": "EMP-1"}, format="json")
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["message"], "El registro de asistencia del día cambió, intenta de nuevo")

    def test_created_employee_checks_in_by_id(self):
        created = self.client.post(
            "/api/employees",
            {"id": "EMP-9", "name": "Ana", "area": "Ventas", "barcode": "ABC-123"},
            format="json",
        )
        self.assertEqual(created.status_code, 201)

        response = self.client.post("/api/checkin", {"employeeId": "EMP-9"}, format="json")
        self.assertEqual(response.status_code, 201)
        response = self.client.post("/api/checkin", {"employeeId": "ABC-123"}, format="json")
        self.assertEqual(response.status_code, 404)

    @override_settings(CHECKIN_RATE_LIMIT="2/m")
    def test_request_throttle(self):
        statuses = [
            self.client.post("/api/checkin", {"employeeId": "ghost"}, format="json").status_code
            for _ in range(3)
        ]
        self.assertEqual(statuses, [404, 404, 429])


class AttendanceApiTests(APITestCase):
    def setUp(self):
        cache.clear()
        self.a = make_employee("A")
        self.b = make_employee("B")

    def test_ledger_filters(self):
        check_in("A", now=local_dt(8, day=DAY - timedelta(days=1)))
        check_in("A", now=local_dt(8))
        check_in("B", now=local_dt(9))

        response = self.client.get("/api/attendance", {"startDate": "2024-05-10", "endDate": "2024-05-10"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["employeeId"] for row in response.data], ["B", "A"])

        response = self.client.get("/api/attendance", {"employeeId": "A"})
        self.assertEqual([row["date"] for row in response.data], ["2024-05-10", "2024-05-09"])

    def test_ledger_rejects_bad_dates(self):
        response = self.client.get("/api/attendance", {"startDate": "10/05/2024"})
        self.assertEqual(response.status_code, 400)

        response = self.client.get("/api/attendance", {"startDate": "2024-05-11", "endDate": "2024-05-10"})
        self.assertEqual(response.status_code, 400)

    def test_today_and_stats(self):
        self.client.post("/api/checkin", {"employeeId": "A"}, format="json")
        self.client.post("/api/checkin", {"employeeId": "B"}, format="json")
        check_in("A", now=local_dt(8, day=DAY))

        today = self.client.get("/api/attendance/today")
        self.assertEqual(today.status_code, 200)
        self.assertEqual(len(today.data), 2)
        self.assertEqual({row["employeeId"] for row in today.data}, {"A", "B"})

        stats = self.client.get("/api/attendance/stats")
        self.assertEqual(stats.status_code, 200)
        self.assertEqual(stats.data, {"checkIns": 2, "checkOuts": 0, "activeEmployees": 2})


class ScheduleApiTests(APITestCase):
    def _payload(self, **overrides):
        payload = {"name": "Matutino", "startTime": "08:00", "endTime": "17:00"}
        payload.update(overrides)
        return payload

    def test_create_and_list(self):
        response = self.client.post(
            "/api/schedules",
            self._payload(lunchStart="13:00", lunchEnd="14:00"),
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data["toleranceMinutes"], 15)
        self.assertFalse(response.data["isDefault"])
        self.assertEqual(response.data["lunchStart"], "13:00:00")
        self.assertIsNone(response.data["breakfastStart"])

        listing = self.client.get("/api/schedules")
        self.assertEqual([row["name"] for row in listing.data], ["Matutino"])

    def test_end_must_follow_start(self):
        response = self.client.post("/api/schedules", self._payload(endTime="07:00"), format="json")
        self.assertEqual(response.status_code, 400)
        self.assertIn("endTime", response.data["errors"])

    def test_meal_windows_must_be_complete(self):
        response = self.client.post("/api/schedules", self._payload(breakfastStart="09:00"), format="json")
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            "/api/schedules", self._payload(lunchStart="14:00", lunchEnd="13:00"), format="json"
        )
        self.assertEqual(response.status_code, 400)

    def test_negative_tolerance_is_rejected(self):
        response = self.client.post("/api/schedules", self._payload(toleranceMinutes=-1), format="json")
        self.assertEqual(response.status_code, 400)

    def test_marking_default_clears_previous_default(self):
        first = Schedule.objects.create(name="A", start_time="08:00", end_time="16:00", is_default=True)
        response = self.client.post("/api/schedules", self._payload(name="B", isDefault=True), format="json")
        self.assertEqual(response.status_code, 201)

        first.refresh_from_db()
        self.assertFalse(first.is_default)

        response = self.client.put(f"/api/schedules/{first.pk}", {"isDefault": True}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(list(Schedule.objects.filter(is_default=True).values_list("name", flat=True)), ["A"])

    def test_partial_update_validates_against_stored_times(self):
        schedule = Schedule.objects.create(name="A", start_time="08:00", end_time="16:00")
        response = self.client.put(f"/api/schedules/{schedule.pk}", {"endTime": "07:30"}, format="json")
        self.assertEqual(response.status_code, 400)

    def test_delete_unassigns_employees(self):
        schedule = Schedule.objects.create(name="A", start_time="08:00", end_time="16:00")
        employee = make_employee(schedule=schedule)

        response = self.client.delete(f"/api/schedules/{schedule.pk}")
        self.assertEqual(response.status_code, 204)
        employee.refresh_from_db()
        self.assertIsNone(employee.schedule)

    def test_unknown_schedule(self):
        response = self.client.get("/api/schedules/00000000-0000-0000-0000-000000000000")
        self.assertEqual(response.status_code, 404)
