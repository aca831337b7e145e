from django.dispatch import receiver

from apps.core.models import VerificationEvent
from apps.utils.notifications import send_meal_logged_notification
from .clock import current_config, local_now
from .signals import verification_completed


@receiver(verification_completed)
def record_verification_event(sender, outcome, device_info='', staff_token=None, **kwargs):
    """Persist the outcome for the live feed."""
    VerificationEvent.objects.create(
        student=outcome.student,
        meal=outcome.meal or '',
        access_method=outcome.access_method,
        result=outcome.reason,
        message=outcome.message[:200],
        staff_token=staff_token,
        device_info=device_info or '',
    )


@receiver(verification_completed)
def notify_student(sender, outcome, **kwargs):
    if not outcome.success or not outcome.student.tg_user_id:
        return
    logged_at = local_now(outcome.log.created_at, current_config())
    send_meal_logged_notification.delay(
        outcome.student.tg_user_id,
        outcome.meal,
        outcome.access_method,
        logged_at.strftime('%H:%M:%S'),
    )
