from rest_framework import status
from rest_framework.exceptions import APIException, NotFound


class EmployeeNotFound(NotFound):
    default_detail = "Employee not found"
    default_code = "employee_not_found"


class CheckInCooldown(APIException):
    """Raised when an employee scans again before the cooldown has elapsed."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "checkin_cooldown"

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__(
            detail=f"Por favor espera {retry_after} segundos antes de registrar nuevamente"
        )


class DayComplete(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Ya se han completado todos los registros del día"
    default_code = "day_complete"


class LedgerConflict(APIException):
    """The day's ledger already holds the sequence slot the next scan needs."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "El registro de asistencia del día cambió, intenta de nuevo"
    default_code = "ledger_conflict"
