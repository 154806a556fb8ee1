"""Views for the employee directory"""
import logging

from rest_framework import status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Employee
from .serializers import EmployeeSerializer
from .utils import list_departments

logger = logging.getLogger(__name__)


class EmployeeViewSet(viewsets.ModelViewSet):
    """CRUD for employee directory records; updates are always partial."""

    serializer_class = EmployeeSerializer
    queryset = Employee.objects.select_related('schedule').order_by('name')
    lookup_value_regex = '[^/]+'

    def update(self, request, *args, **kwargs):
        kwargs['partial'] = True
        return super().update(request, *args, **kwargs)

    def perform_create(self, serializer):
        employee = serializer.save()
        logger.info("Created employee %s (%s)", employee.id, employee.area)

    def perform_destroy(self, instance):
        # Ledger rows stay behind and keep the employee id.
        logger.info("Deleting employee %s", instance.id)
        instance.delete()


class DepartmentListView(APIView):
    """Distinct employee areas, used to populate department pickers."""

    def get(self, request):
        return Response(list_departments(), status=status.HTTP_200_OK)
