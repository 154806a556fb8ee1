"""Utility functions for the employee directory"""
import logging
import os
import uuid

from django.core.files.storage import default_storage

from .models import Employee

logger = logging.getLogger(__name__)


def store_employee_photo(photo):
    """
    Persist an uploaded employee photo and return its public URL.

    The file gets a random name (keeping the extension) so two uploads with
    the same client-side name never collide.
    """
    extension = os.path.splitext(photo.name or '')[1].lower()
    stored_name = default_storage.save(f"{uuid.uuid4().hex}{extension}", photo)
    logger.info("Stored employee photo %s (%s bytes)", stored_name, photo.size)
    return default_storage.url(stored_name)


def list_departments():
    """Distinct, non-empty employee areas sorted alphabetically"""
    areas = Employee.objects.exclude(area='').values_list('area', flat=True).distinct()
    return sorted(set(areas))
