from django.core.exceptions import ValidationError

from apps.core.models import Student
from .outcomes import NOT_FOUND, SUBSCRIPTION_INACTIVE


def find_student(student_id):
    """Look a student up by primary key; malformed ids count as missing."""
    try:
        return Student.objects.filter(id=student_id).first()
    except (ValidationError, ValueError):
        return None


def find_student_by_short_id(short_id):
    try:
        short_id = int(short_id)
    except (TypeError, ValueError):
        return None
    return Student.objects.filter(short_id=short_id).first()


def check_eligible(student):
    """Return ``(eligible, reason)``.

    Only ``is_active`` gates a meal. ``subscription_end_date`` is kept for
    display and for the nightly expiry job, which flips ``is_active``.
    """
    if student is None:
        return False, NOT_FOUND
    if not student.is_active:
        return False, SUBSCRIPTION_INACTIVE
    return True, None
