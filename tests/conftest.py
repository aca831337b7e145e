from datetime import datetime, time
from decimal import Decimal
from unittest import mock
from zoneinfo import ZoneInfo

import pytest

from apps.core.models import Student, StaffToken
from apps.redemption.clock import MealWindowConfig

IST = ZoneInfo('Asia/Kolkata')


@pytest.fixture
def at():
    """Build an aware datetime on 2026-10-19 in mess local time."""
    def make(hour, minute=0, second=0, day=19):
        return datetime(2026, 10, day, hour, minute, second, tzinfo=IST)
    return make


@pytest.fixture
def config():
    return MealWindowConfig(
        lunch_start=time(12, 0),
        lunch_end=time(14, 0),
        dinner_start=time(19, 0),
        dinner_end=time(21, 0),
        cutoff_hour=16,
        timezone='Asia/Kolkata',
        lunch_price=Decimal('50'),
        dinner_price=Decimal('60'),
    )


@pytest.fixture
def make_student(db):
    counter = iter(range(200, 999))

    def make(**kwargs):
        kwargs.setdefault('short_id', next(counter))
        kwargs.setdefault('full_name', f"Student {kwargs['short_id']}")
        return Student.objects.create(**kwargs)
    return make


@pytest.fixture
def student(make_student):
    return make_student(short_id=101, full_name='Asha')


@pytest.fixture
def inactive_student(make_student):
    return make_student(short_id=102, full_name='Ravi', is_active=False)


@pytest.fixture
def staff_token(db):
    return StaffToken.create_token('Counter 1', expires_days=1)


@pytest.fixture(autouse=True)
def meal_notification():
    with mock.patch('apps.redemption.receivers.send_meal_logged_notification') as task:
        yield task
