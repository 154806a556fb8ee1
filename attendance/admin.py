from django.contrib import admin

from .models import AttendanceDay, AttendanceEvent, Schedule


@admin.register(Schedule)
class ScheduleAdmin(admin.ModelAdmin):
    list_display = ("name", "start_time", "end_time", "tolerance_minutes", "is_default")
    list_filter = ("is_default",)
    search_fields = ("name",)


@admin.register(AttendanceEvent)
class AttendanceEventAdmin(admin.ModelAdmin):
    list_display = ("employee_id", "date", "type", "timestamp", "is_automatic")
    list_filter = ("type", "is_automatic", "date")
    search_fields = ("employee__id", "employee__name")
    date_hierarchy = "date"

    # The ledger is append-only.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AttendanceDay)
class AttendanceDayAdmin(admin.ModelAdmin):
    list_display = ("employee_id", "date", "position", "last_event_type", "last_event_at", "closed_automatically")
    list_filter = ("closed_automatically", "date")
    readonly_fields = ("employee", "date", "position", "last_event_type", "last_event_at", "closed_automatically")
