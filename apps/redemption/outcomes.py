"""Result values shared by the verification paths.

Business failures (duplicate meal, inactive subscription, bad code) are
ordinary return values. Only an unreachable record store is raised, as
:class:`StoreUnavailable`, and the orchestrator turns it into a failure
outcome before anything leaves the engine.
"""
from dataclasses import dataclass
from typing import Any, Optional

SELF_ID = 'SELF_ID'
DELEGATED_CODE = 'DELEGATED_CODE'

SUCCESS = 'SUCCESS'
NOT_FOUND = 'NOT_FOUND'
SUBSCRIPTION_INACTIVE = 'SUBSCRIPTION_INACTIVE'
ALREADY_RECORDED = 'ALREADY_RECORDED'
CODE_EXPIRED = 'CODE_EXPIRED'
CODE_NOT_FOUND = 'CODE_NOT_FOUND'
STORE_UNAVAILABLE = 'STORE_UNAVAILABLE'

FAILURE_REASONS = (
    NOT_FOUND,
    SUBSCRIPTION_INACTIVE,
    ALREADY_RECORDED,
    CODE_EXPIRED,
    CODE_NOT_FOUND,
    STORE_UNAVAILABLE,
)


class StoreUnavailable(Exception):
    """The record store kept failing after the retry budget was spent."""


def _name(student):
    return student.full_name if student is not None else 'this student'


def _default_message(reason, student, meal):
    if reason == SUCCESS:
        return f"{meal} logged for {_name(student)}"
    if reason == NOT_FOUND:
        return "Student not found. Please check the ID."
    if reason == SUBSCRIPTION_INACTIVE:
        return f"{_name(student)}'s subscription is inactive"
    if reason == ALREADY_RECORDED:
        return f"{meal} already logged for {_name(student)} today"
    if reason == CODE_EXPIRED:
        return "This pickup code has expired"
    if reason == CODE_NOT_FOUND:
        return "Invalid or already used pickup code"
    return "Could not reach the database. Please try again."


@dataclass(frozen=True)
class VerificationOutcome:
    access_method: str
    reason: str = SUCCESS
    student: Optional[Any] = None
    meal: Optional[str] = None
    log: Optional[Any] = None
    message: str = ''

    @property
    def success(self):
        return self.reason == SUCCESS

    @property
    def retryable(self):
        return self.reason == STORE_UNAVAILABLE

    @classmethod
    def succeeded(cls, student, meal, access_method, log):
        return cls(
            access_method=access_method,
            student=student,
            meal=meal,
            log=log,
            message=_default_message(SUCCESS, student, meal),
        )

    @classmethod
    def failed(cls, reason, access_method, student=None, meal=None, message=None):
        if reason not in FAILURE_REASONS:
            raise ValueError(f"Unknown failure reason: {reason}")
        return cls(
            access_method=access_method,
            reason=reason,
            student=student,
            meal=meal,
            message=message or _default_message(reason, student, meal),
        )
