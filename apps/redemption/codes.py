"""Delegated pickup codes.

A code is ACTIVE until it is used or its expiry passes. Expiry is never
stored; it is derived from ``expires_at`` at read time. Redemption claims
the code with a conditional update inside the same transaction as the
ledger insert, so a meal is never logged while its code stays redeemable.
A code whose meal turns out to be already logged is still consumed.
"""
import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.core.models import PickupCode, Settings
from .clock import local_date, resolve_meal_slot
from .eligibility import check_eligible
from .ledger import record_consumption
from .outcomes import (
    ALREADY_RECORDED,
    CODE_EXPIRED,
    CODE_NOT_FOUND,
    DELEGATED_CODE,
    VerificationOutcome,
)

logger = logging.getLogger(__name__)

MAX_GENERATION_ATTEMPTS = 5


def generate_code(length=None):
    length = length or settings.MESS_CONFIG['code_length']
    lowest = 10 ** (length - 1)
    return str(lowest + secrets.randbelow(9 * lowest))


def issue_code(student, now=None, ttl_minutes=None):
    now = now or timezone.now()
    if ttl_minutes is None:
        ttl_minutes = Settings.get_settings().code_ttl_minutes

    # Steer clear of codes that are still live; collisions remain possible but rare.
    code = generate_code()
    for _ in range(MAX_GENERATION_ATTEMPTS):
        if not PickupCode.objects.filter(code=code, is_used=False, expires_at__gt=now).exists():
            break
        code = generate_code()

    pickup = PickupCode.objects.create(
        student=student,
        code=code,
        created_at=now,
        expires_at=now + timedelta(minutes=ttl_minutes),
    )
    logger.info("Issued pickup code for student %s, expires %s", student.short_id, pickup.expires_at)
    return pickup


def code_history(student, limit=None):
    limit = limit or settings.MESS_CONFIG['code_history_limit']
    return list(student.pickup_codes.order_by('-created_at')[:limit])


def redeem_code(code, now, config):
    code = (code or '').strip()
    if not code:
        return VerificationOutcome.failed(CODE_NOT_FOUND, DELEGATED_CODE)

    with transaction.atomic():
        pickup = (
            PickupCode.objects.select_for_update()
            .filter(code=code, is_used=False)
            .order_by('-created_at')
            .first()
        )
        if pickup is None:
            return VerificationOutcome.failed(CODE_NOT_FOUND, DELEGATED_CODE)

        student = pickup.student
        if pickup.is_expired(now):
            return VerificationOutcome.failed(CODE_EXPIRED, DELEGATED_CODE, student=student)

        eligible, reason = check_eligible(student)
        if not eligible:
            return VerificationOutcome.failed(reason, DELEGATED_CODE, student=student)

        meal = resolve_meal_slot(now, config)

        claimed = PickupCode.objects.filter(pk=pickup.pk, is_used=False).update(is_used=True, used_at=now)
        if not claimed:
            return VerificationOutcome.failed(CODE_NOT_FOUND, DELEGATED_CODE, student=student)

        log, created = record_consumption(
            student, meal, DELEGATED_CODE, date=local_date(now, config), now=now
        )
        if not created:
            return VerificationOutcome.failed(ALREADY_RECORDED, DELEGATED_CODE, student=student, meal=meal)

    return VerificationOutcome.succeeded(student, meal, DELEGATED_CODE, log)
