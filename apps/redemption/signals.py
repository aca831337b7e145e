import logging

from django.dispatch import Signal

from .outcomes import VerificationOutcome

logger = logging.getLogger(__name__)

# Sent after every verification attempt with ``outcome`` plus request context
# (``device_info``, ``staff_token``). Dashboards and notifications listen here.
verification_completed = Signal()


def publish(outcome, **context):
    responses = verification_completed.send_robust(sender=VerificationOutcome, outcome=outcome, **context)
    for receiver, response in responses:
        if isinstance(response, Exception):
            logger.error("Verification receiver %s failed: %s", getattr(receiver, '__name__', receiver), response)
    return responses
