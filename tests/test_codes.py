import threading
from datetime import timedelta
from unittest import mock

import pytest
from django.db import connection, connections

from apps.core.models import MealLog, PickupCode
from apps.redemption.codes import code_history, generate_code, issue_code, redeem_code
from apps.redemption.ledger import record_consumption
from apps.redemption.outcomes import (
    ALREADY_RECORDED,
    CODE_EXPIRED,
    CODE_NOT_FOUND,
    DELEGATED_CODE,
    SELF_ID,
    SUBSCRIPTION_INACTIVE,
    SUCCESS,
)


def test_generated_codes_are_six_digits():
    for _ in range(50):
        code = generate_code()
        assert len(code) == 6
        assert code.isdigit()
        assert code[0] != '0'


def test_issue_code_sets_fifteen_minute_expiry(student, at):
    pickup = issue_code(student, now=at(12))

    assert pickup.expires_at == at(12, 15)
    assert pickup.is_used is False
    assert pickup.status(at(12, 1)) == 'ACTIVE'


def test_issue_code_skips_codes_that_are_still_live(student, make_student, at):
    PickupCode.objects.create(student=make_student(), code='111111', created_at=at(12), expires_at=at(12, 15))

    with mock.patch('apps.redemption.codes.generate_code', side_effect=['111111', '222222']):
        pickup = issue_code(student, now=at(12, 5))

    assert pickup.code == '222222'


def test_redeem_just_before_expiry_succeeds(student, at, config):
    pickup = issue_code(student, now=at(13))

    outcome = redeem_code(pickup.code, at(13, 14, 59), config)

    assert outcome.success
    assert outcome.meal == 'LUNCH'
    assert outcome.access_method == DELEGATED_CODE
    assert outcome.log.access_method == DELEGATED_CODE
    pickup.refresh_from_db()
    assert pickup.is_used
    assert pickup.used_at == at(13, 14, 59)


def test_redeem_after_expiry_fails_and_leaves_code_unused(student, at, config):
    pickup = issue_code(student, now=at(13))

    outcome = redeem_code(pickup.code, at(13, 15, 1), config)

    assert outcome.reason == CODE_EXPIRED
    assert outcome.student == student
    assert not MealLog.objects.exists()
    pickup.refresh_from_db()
    assert not pickup.is_used
    assert pickup.status(at(13, 15, 1)) == 'EXPIRED'


def test_expiry_boundary_is_exclusive(student, at, config):
    pickup = issue_code(student, now=at(13))
    assert redeem_code(pickup.code, at(13, 15), config).reason == CODE_EXPIRED


def test_code_works_only_once(student, at, config):
    pickup = issue_code(student, now=at(13))

    first = redeem_code(pickup.code, at(13, 1), config)
    second = redeem_code(pickup.code, at(13, 2), config)

    assert first.success
    assert second.reason == CODE_NOT_FOUND
    assert MealLog.objects.filter(student=student).count() == 1


def test_unknown_and_blank_codes(db, at, config):
    assert redeem_code('999999', at(13), config).reason == CODE_NOT_FOUND
    assert redeem_code('  ', at(13), config).reason == CODE_NOT_FOUND
    assert redeem_code(None, at(13), config).reason == CODE_NOT_FOUND


def test_inactive_owner_keeps_code_unused(inactive_student, at, config):
    pickup = issue_code(inactive_student, now=at(13))

    outcome = redeem_code(pickup.code, at(13, 1), config)

    assert outcome.reason == SUBSCRIPTION_INACTIVE
    pickup.refresh_from_db()
    assert not pickup.is_used


def test_code_is_consumed_even_when_meal_already_logged(student, at, config):
    record_consumption(student, 'LUNCH', SELF_ID, date=at(12).date(), now=at(12, 30))
    pickup = issue_code(student, now=at(13))

    outcome = redeem_code(pickup.code, at(13, 1), config)

    assert outcome.reason == ALREADY_RECORDED
    assert outcome.message == 'LUNCH already logged for Asha today'
    pickup.refresh_from_db()
    assert pickup.is_used
    assert redeem_code(pickup.code, at(13, 2), config).reason == CODE_NOT_FOUND


def test_newest_matching_code_wins(student, make_student, at, config):
    other = make_student(full_name='Meera')
    PickupCode.objects.create(student=other, code='333333', created_at=at(12), expires_at=at(12, 15))
    PickupCode.objects.create(student=student, code='333333', created_at=at(13), expires_at=at(13, 15))

    outcome = redeem_code('333333', at(13, 5), config)

    assert outcome.success
    assert outcome.student == student


def test_code_history_is_newest_first_and_limited(student, at):
    for minute in range(7):
        issue_code(student, now=at(10, minute))

    history = code_history(student)

    assert len(history) == 5
    assert history[0].created_at == at(10, 6)
    assert [p.created_at for p in history] == sorted((p.created_at for p in history), reverse=True)


def test_status_prefers_used_over_expired(student, at):
    pickup = issue_code(student, now=at(10))
    pickup.is_used = True

    assert pickup.status(at(10) + timedelta(hours=1)) == 'USED'


def redeem_concurrently(codes, now, config):
    barrier = threading.Barrier(len(codes))
    outcomes = []

    def attempt(code):
        try:
            barrier.wait()
            outcomes.append(redeem_code(code, now, config))
        finally:
            connections.close_all()

    threads = [threading.Thread(target=attempt, args=(code,)) for code in codes]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return outcomes


needs_postgres = pytest.mark.skipif(
    connection.vendor != 'postgresql', reason="needs concurrent connections to a real server"
)


@needs_postgres
@pytest.mark.django_db(transaction=True)
def test_code_redeemed_concurrently_succeeds_once(student, at, config):
    pickup = issue_code(student, now=at(13))

    outcomes = redeem_concurrently([pickup.code] * 4, at(13, 1), config)

    assert [outcome.success for outcome in outcomes].count(True) == 1
    assert sorted(outcome.reason for outcome in outcomes if not outcome.success) == [CODE_NOT_FOUND] * 3
    assert MealLog.objects.filter(student=student).count() == 1
    assert PickupCode.objects.get(pk=pickup.pk).is_used


@needs_postgres
@pytest.mark.django_db(transaction=True)
def test_two_live_codes_for_one_meal_log_it_once(student, at, config):
    first = issue_code(student, now=at(13))
    second = issue_code(student, now=at(13))

    outcomes = redeem_concurrently([first.code, second.code], at(13, 1), config)

    assert sorted(outcome.reason for outcome in outcomes) == sorted([ALREADY_RECORDED, SUCCESS])
    assert MealLog.objects.filter(student=student).count() == 1
    assert PickupCode.objects.filter(student=student, is_used=True).count() == 2
