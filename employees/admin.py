from django.contrib import admin

from .models import Employee


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ['id', 'name', 'area', 'schedule', 'barcode', 'created_at']
    list_filter = ['area', 'schedule']
    search_fields = ['id', 'name', 'barcode']
    readonly_fields = ['created_at']
