"""Append-only meal ledger.

At most one CONSUMED row may exist per (student, date, meal). The database
enforces this through the ``unique_consumed_meal_per_day`` constraint; the
insert below is the only write and a constraint violation is how a
duplicate is detected. There is no read-then-insert check.
"""
import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.core.models import MealLog
from .clock import mess_today

logger = logging.getLogger(__name__)


def consumed_exists(student, date, meal):
    return MealLog.objects.filter(student=student, date=date, meal=meal, status='CONSUMED').exists()


def record_consumption(student, meal, access_method, date=None, now=None):
    """Insert a CONSUMED row. Returns ``(log, created)``.

    ``created`` is False when the meal was already logged. Any other
    integrity error propagates.
    """
    now = now or timezone.now()
    if date is None:
        date = mess_today(now)

    try:
        with transaction.atomic():
            log = MealLog.objects.create(
                student=student,
                date=date,
                meal=meal,
                status='CONSUMED',
                access_method=access_method,
                created_at=now,
            )
    except IntegrityError:
        if not consumed_exists(student, date, meal):
            raise
        logger.info("Duplicate %s for student %s on %s rejected", meal, student.short_id, date)
        return None, False

    return log, True


def logs_for_date(date):
    return (
        MealLog.objects.filter(date=date)
        .select_related('student')
        .order_by('-created_at')
    )


def meals_consumed_on(student, date):
    return list(
        MealLog.objects.filter(student=student, date=date, status='CONSUMED')
        .order_by('meal')
        .values_list('meal', flat=True)
    )
