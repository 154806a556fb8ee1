"""URL Configuration for employees app"""
from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import DepartmentListView, EmployeeViewSet

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register(r'employees', EmployeeViewSet, basename='employee')

urlpatterns = router.urls
urlpatterns += [
    path('departments', DepartmentListView.as_view(), name='department-list'),
]
