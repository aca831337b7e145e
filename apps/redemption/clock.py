"""Meal slot resolution.

The mess classifies every verification into LUNCH or DINNER. By default a
single cutoff hour splits the day; the four window boundaries are shown to
students as business hours. The ``WINDOWS`` policy matches against those
boundaries instead and falls back to the nearest window.
"""
from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone

LUNCH = 'LUNCH'
DINNER = 'DINNER'

CUTOFF = 'CUTOFF'
WINDOWS = 'WINDOWS'


def _as_time(value):
    if isinstance(value, str):
        return time.fromisoformat(value)
    return value


def _as_decimal(value):
    return value if isinstance(value, Decimal) else Decimal(str(value))


@dataclass(frozen=True)
class MealWindowConfig:
    lunch_start: time
    lunch_end: time
    dinner_start: time
    dinner_end: time
    cutoff_hour: int = 16
    policy: str = CUTOFF
    timezone: str = 'Asia/Kolkata'
    lunch_price: Decimal = Decimal('50')
    dinner_price: Decimal = Decimal('50')
    code_ttl_minutes: int = 15

    @classmethod
    def defaults(cls):
        config = settings.MESS_CONFIG
        windows = config['meal_windows']
        return cls(
            lunch_start=_as_time(windows['LUNCH']['start']),
            lunch_end=_as_time(windows['LUNCH']['end']),
            dinner_start=_as_time(windows['DINNER']['start']),
            dinner_end=_as_time(windows['DINNER']['end']),
            cutoff_hour=config['meal_cutoff_hour'],
            timezone=settings.TIME_ZONE,
            lunch_price=_as_decimal(config['meal_prices']['LUNCH']),
            dinner_price=_as_decimal(config['meal_prices']['DINNER']),
            code_ttl_minutes=config['code_ttl_minutes'],
        )

    @classmethod
    def from_settings(cls, app_settings):
        return cls(
            lunch_start=_as_time(app_settings.lunch_start),
            lunch_end=_as_time(app_settings.lunch_end),
            dinner_start=_as_time(app_settings.dinner_start),
            dinner_end=_as_time(app_settings.dinner_end),
            cutoff_hour=app_settings.meal_cutoff_hour,
            policy=app_settings.slot_policy,
            timezone=app_settings.timezone,
            lunch_price=_as_decimal(app_settings.lunch_price),
            dinner_price=_as_decimal(app_settings.dinner_price),
            code_ttl_minutes=app_settings.code_ttl_minutes,
        )

    def business_hours(self):
        return {
            LUNCH: {'start': self.lunch_start.strftime('%H:%M'), 'end': self.lunch_end.strftime('%H:%M'),
                    'price': f'{self.lunch_price:.2f}'},
            DINNER: {'start': self.dinner_start.strftime('%H:%M'), 'end': self.dinner_end.strftime('%H:%M'),
                     'price': f'{self.dinner_price:.2f}'},
        }


def current_config():
    from apps.core.models import Settings

    return MealWindowConfig.from_settings(Settings.get_settings())


def local_now(now, config):
    """Wall-clock time at the mess. Naive datetimes are taken as already local."""
    if now.tzinfo is None:
        return now
    return now.astimezone(ZoneInfo(config.timezone))


def local_date(now, config):
    return local_now(now, config).date()


def mess_today(now=None, config=None):
    """The business date meals are filed under. Every "today" goes through here."""
    return local_date(now or timezone.now(), config or current_config())


def _minutes(value):
    return value.hour * 60 + value.minute + value.second / 60


def _distance(moment, start, end):
    m, s, e = _minutes(moment), _minutes(start), _minutes(end)
    if s <= m <= e:
        return 0
    return min(abs(m - s), abs(m - e))


def resolve_meal_slot(now, config):
    """Map ``now`` to LUNCH or DINNER. Pure: same inputs, same slot."""
    moment = local_now(now, config)

    if config.policy == WINDOWS:
        wall = moment.time()
        lunch = _distance(wall, config.lunch_start, config.lunch_end)
        dinner = _distance(wall, config.dinner_start, config.dinner_end)
        return LUNCH if lunch <= dinner else DINNER

    return LUNCH if moment.hour < config.cutoff_hour else DINNER
