"""Entry points for staff terminals and self-service flows.

Each call resolves the clock once, runs one verification path against the
record store and publishes the outcome on ``verification_completed``.
Nothing is kept between calls.
"""
import logging
import time

from django.conf import settings
from django.db import InterfaceError, OperationalError
from django.utils import timezone

from apps.utils.qr_utils import verify_qr_payload
from .clock import current_config, local_date, resolve_meal_slot
from .codes import redeem_code
from .eligibility import check_eligible, find_student, find_student_by_short_id
from .ledger import record_consumption
from .outcomes import (
    ALREADY_RECORDED,
    DELEGATED_CODE,
    NOT_FOUND,
    SELF_ID,
    STORE_UNAVAILABLE,
    StoreUnavailable,
    VerificationOutcome,
)
from .signals import publish

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (OperationalError, InterfaceError)


def with_store_retry(operation, attempts=None, backoff=None, sleep=time.sleep):
    """Run ``operation`` retrying transport failures with exponential backoff."""
    if attempts is None:
        attempts = settings.MESS_CONFIG['store_retry_attempts']
    if backoff is None:
        backoff = settings.MESS_CONFIG['store_retry_backoff_seconds']

    for attempt in range(attempts + 1):
        try:
            return operation()
        except RETRYABLE_ERRORS as exc:
            if attempt >= attempts:
                logger.error("Record store unavailable after %s attempts: %s", attempt + 1, exc)
                raise StoreUnavailable(str(exc)) from exc
            logger.warning("Record store error (attempt %s), retrying: %s", attempt + 1, exc)
            sleep(backoff * (2 ** attempt))


def _verify_student(student, now, config):
    eligible, reason = check_eligible(student)
    if not eligible:
        return VerificationOutcome.failed(reason, SELF_ID, student=student)

    meal = resolve_meal_slot(now, config)
    log, created = record_consumption(student, meal, SELF_ID, date=local_date(now, config), now=now)
    if not created:
        return VerificationOutcome.failed(ALREADY_RECORDED, SELF_ID, student=student, meal=meal)
    return VerificationOutcome.succeeded(student, meal, SELF_ID, log)


def _run(access_method, operation, clock, context):
    now = (clock or timezone.now)()
    try:
        outcome = with_store_retry(lambda: operation(now, current_config()))
    except StoreUnavailable:
        outcome = VerificationOutcome.failed(STORE_UNAVAILABLE, access_method)

    student = outcome.student.short_id if outcome.student is not None else None
    if outcome.success:
        logger.info("%s logged for student %s via %s", outcome.meal, student, access_method)
    else:
        logger.info("Verification via %s failed for student %s: %s", access_method, student, outcome.reason)

    publish(outcome, **context)
    return outcome


def verify_by_short_id(short_id, clock=None, **context):
    return _run(
        SELF_ID,
        lambda now, config: _verify_student(find_student_by_short_id(short_id), now, config),
        clock,
        context,
    )


def verify_by_user_id(student_id, clock=None, **context):
    return _run(
        SELF_ID,
        lambda now, config: _verify_student(find_student(student_id), now, config),
        clock,
        context,
    )


def _verify_qr(payload, now, config):
    student_id, error_msg = verify_qr_payload(payload)
    if student_id is None:
        logger.info("Rejected QR payload: %s", error_msg)
        return VerificationOutcome.failed(NOT_FOUND, SELF_ID, message=error_msg)
    return _verify_student(find_student(student_id), now, config)


def verify_by_qr(payload, clock=None, **context):
    return _run(SELF_ID, lambda now, config: _verify_qr(payload, now, config), clock, context)


def verify_by_code(code, clock=None, **context):
    return _run(DELEGATED_CODE, lambda now, config: redeem_code(code, now, config), clock, context)
