import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import List, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from employees.models import Employee

from .exceptions import CheckInCooldown, DayComplete, EmployeeNotFound, LedgerConflict
from .models import AttendanceDay, AttendanceEvent, Schedule

logger = logging.getLogger(__name__)

CHECKIN_COOLDOWN_SECONDS = 30
# Second attempt re-reads the ledger after losing a race for a sequence slot.
APPEND_ATTEMPTS = 2

# Ordinal position within the day -> (event type, label)
EVENT_SEQUENCE = [
    (AttendanceEvent.TYPE_ENTRADA, "Entrada"),
    (AttendanceEvent.TYPE_SALIDA_DESAYUNO, "Salida desayuno"),
    (AttendanceEvent.TYPE_ENTRADA_DESAYUNO, "Entrada desayuno"),
    (AttendanceEvent.TYPE_SALIDA_COMIDA, "Salida comida"),
    (AttendanceEvent.TYPE_ENTRADA_COMIDA, "Entrada comida"),
    (AttendanceEvent.TYPE_SALIDA_GENERAL, "Salida general"),
]
EVENTS_PER_DAY = len(EVENT_SEQUENCE)

CHECKOUT_TYPES = [AttendanceEvent.TYPE_SALIDA_GENERAL, AttendanceEvent.TYPE_AUTO_CHECKOUT]
AUTO_CHECKOUT_NOTES = "Registro automático generado por el sistema"


@dataclass
class CheckInResult:
    event: AttendanceEvent
    employee: Employee
    label: str
    hours_worked: str


@dataclass
class DailyStats:
    check_ins: int
    check_outs: int
    active_employees: int


def normalize_datetime(value: Optional[datetime]) -> datetime:
    """Ensure datetimes are timezone-aware using current timezone."""
    if value is None:
        return timezone.now()
    if timezone.is_naive(value):
        return timezone.make_aware(value, timezone.get_current_timezone())
    return value


def format_worked_time(elapsed: timedelta) -> str:
    """Render elapsed time as "{h}h {m}m", truncating seconds."""
    total_seconds = max(int(elapsed.total_seconds()), 0)
    hours, remainder = divmod(total_seconds, 3600)
    return f"{hours}h {remainder // 60}m"


def _lock_day(employee_id: str, day: date) -> AttendanceDay:
    """
    Lock the day row for an employee and bring it in line with the ledger.

    The ledger is the source of truth; rows added or removed outside
    check_in (imports, corrections) are picked up here.
    """
    state, _ = AttendanceDay.objects.select_for_update().get_or_create(employee_id=employee_id, date=day)
    events = AttendanceEvent.objects.filter(employee_id=employee_id, date=day)
    latest = events.order_by("-timestamp").first()
    ledger_state = {
        "position": events.filter(sequence__isnull=False).count(),
        "last_event_type": latest.type if latest else None,
        "last_event_at": latest.timestamp if latest else None,
        "closed_automatically": events.filter(type=AttendanceEvent.TYPE_AUTO_CHECKOUT).exists(),
    }
    stale = [field for field, value in ledger_state.items() if getattr(state, field) != value]
    if stale:
        logger.info("Resyncing attendance day %s/%s from ledger: %s", employee_id, day, ", ".join(stale))
        for field in stale:
            setattr(state, field, ledger_state[field])
        state.save(update_fields=stale + ["updated_at"])
    return state


def _hours_worked_since_entry(employee: Employee, day: date, until: datetime) -> str:
    entry = (
        AttendanceEvent.objects.filter(employee=employee, date=day, type=AttendanceEvent.TYPE_ENTRADA)
        .order_by("timestamp")
        .first()
    )
    if entry is None:
        return format_worked_time(timedelta(0))
    return format_worked_time(until - entry.timestamp)


def check_in(employee_id: Optional[str], now: Optional[datetime] = None) -> CheckInResult:
    """
    Record the next attendance event of the day for an employee.

    The event type is picked by how many events the employee already has
    today (entrada, salida desayuno, ... salida general). Scans closer than
    CHECKIN_COOLDOWN_SECONDS apart are rejected, as is any scan after the
    sixth event or after the day was closed by the auto-checkout sweep.
    """
    employee_id = str(employee_id).strip() if employee_id is not None else ""
    if not employee_id:
        raise ValidationError({"employeeId": ["Employee ID is required"]})

    now = normalize_datetime(now)
    today = timezone.localdate(now)

    with transaction.atomic():
        employee = Employee.objects.select_for_update().filter(pk=employee_id).first()
        if employee is None:
            logger.info("Check-in rejected: unknown employee %s", employee_id)
            raise EmployeeNotFound()

        event = None
        for _ in range(APPEND_ATTEMPTS):
            state = _lock_day(employee.pk, today)

            if state.last_event_at is not None:
                elapsed = (now - state.last_event_at).total_seconds()
                if elapsed < CHECKIN_COOLDOWN_SECONDS:
                    remaining = min(math.ceil(CHECKIN_COOLDOWN_SECONDS - elapsed), CHECKIN_COOLDOWN_SECONDS)
                    logger.info("Check-in cooldown for %s: %ss remaining", employee.pk, remaining)
                    raise CheckInCooldown(remaining)

            if state.is_complete:
                logger.info("Check-in rejected: day %s already complete for %s", today, employee.pk)
                raise DayComplete()

            event_type, label = EVENT_SEQUENCE[state.position]
            try:
                with transaction.atomic():
                    event = AttendanceEvent.objects.create(
                        employee=employee,
                        timestamp=now,
                        type=event_type,
                        date=today,
                        sequence=state.position,
                        notes=f"{label} via scanner",
                        is_automatic=False,
                    )
                break
            except IntegrityError:
                logger.warning(
                    "Sequence %s already taken for %s on %s; re-reading ledger", state.position, employee.pk, today
                )

        if event is None:
            logger.error("Ledger for %s on %s has a gap at position %s", employee.pk, today, state.position)
            raise LedgerConflict()

        state.position += 1
        state.last_event_type = event_type
        state.last_event_at = now
        state.save(update_fields=["position", "last_event_type", "last_event_at", "updated_at"])

    hours_worked = format_worked_time(timedelta(0))
    if event_type == AttendanceEvent.TYPE_SALIDA_GENERAL:
        hours_worked = _hours_worked_since_entry(employee, today, now)

    logger.info("Recorded %s for %s on %s", event_type, employee.pk, today)
    return CheckInResult(event=event, employee=employee, label=label, hours_worked=hours_worked)


def _close_day(employee_id: str, day: date, now: datetime) -> Optional[AttendanceEvent]:
    with transaction.atomic():
        state = _lock_day(employee_id, day)
        # Re-check under the lock; a scan may have closed the day meanwhile.
        if state.is_complete:
            return None
        already_closed = AttendanceEvent.objects.filter(
            employee_id=employee_id, date=day, type__in=CHECKOUT_TYPES
        ).exists()
        if already_closed:
            return None

        event = AttendanceEvent.objects.create(
            employee_id=employee_id,
            timestamp=now,
            type=AttendanceEvent.TYPE_AUTO_CHECKOUT,
            date=day,
            sequence=None,
            notes=AUTO_CHECKOUT_NOTES,
            is_automatic=True,
        )
        state.closed_automatically = True
        state.last_event_type = AttendanceEvent.TYPE_AUTO_CHECKOUT
        state.last_event_at = now
        state.save(update_fields=["closed_automatically", "last_event_type", "last_event_at", "updated_at"])
    return event


def run_auto_checkouts(now: Optional[datetime] = None) -> List[AttendanceEvent]:
    """
    Close every day that has an entrada but no departure once the local
    time reaches the auto-checkout hour. Safe to run repeatedly.
    """
    now = normalize_datetime(now)
    local_now = timezone.localtime(now)
    cutoff_hour = settings.ATTENDANCE_AUTO_CHECKOUT_HOUR
    if local_now.hour < cutoff_hour:
        logger.debug("Auto-checkout skipped at %s (cutoff %02d:00)", local_now, cutoff_hour)
        return []

    today = local_now.date()
    types_by_employee = {}
    for employee_id, event_type in AttendanceEvent.objects.filter(date=today).values_list("employee_id", "type"):
        types_by_employee.setdefault(employee_id, set()).add(event_type)

    pending = [
        employee_id
        for employee_id, types in types_by_employee.items()
        if AttendanceEvent.TYPE_ENTRADA in types and not types.intersection(CHECKOUT_TYPES)
    ]
    # Deleted employees keep their ledger rows but are not checked out.
    existing = set(Employee.objects.filter(pk__in=pending).values_list("pk", flat=True))
    pending = [employee_id for employee_id in pending if employee_id in existing]

    created = []
    for employee_id in sorted(pending):
        event = _close_day(employee_id, today, now)
        if event is not None:
            created.append(event)

    logger.info("Auto-checkout for %s created %d event(s)", today, len(created))
    return created


def get_today_stats(today: Optional[date] = None) -> DailyStats:
    """Count arrivals and departures recorded for a day (defaults to today)."""
    if today is None:
        today = timezone.localdate()
    counts = AttendanceEvent.objects.filter(date=today).aggregate(
        check_ins=Count("id", filter=Q(type=AttendanceEvent.TYPE_ENTRADA)),
        check_outs=Count("id", filter=Q(type__in=CHECKOUT_TYPES)),
    )
    return DailyStats(
        check_ins=counts["check_ins"],
        check_outs=counts["check_outs"],
        active_employees=max(0, counts["check_ins"] - counts["check_outs"]),
    )


def list_attendance(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    employee_id: Optional[str] = None,
):
    qs = AttendanceEvent.objects.all()
    if start_date:
        qs = qs.filter(date__gte=start_date)
    if end_date:
        qs = qs.filter(date__lte=end_date)
    if employee_id:
        qs = qs.filter(employee_id=employee_id)
    return qs.order_by("-timestamp")


def attendance_for_date(day: Optional[date] = None):
    if day is None:
        day = timezone.localdate()
    return AttendanceEvent.objects.filter(date=day).order_by("-timestamp")


def clear_default_schedules(exclude: Optional[Schedule] = None) -> int:
    """Drop the default flag from every schedule except ``exclude``."""
    qs = Schedule.objects.filter(is_default=True)
    if exclude is not None and exclude.pk:
        qs = qs.exclude(pk=exclude.pk)
    return qs.update(is_default=False)
