import logging

from celery import shared_task
from apps.core.models import AuditLog, Student
from apps.utils.notifications import send_subscription_expired_notification
from .clock import mess_today

logger = logging.getLogger(__name__)


@shared_task
def deactivate_expired_subscriptions():
    """Flip ``is_active`` off for students whose subscription ended before today."""
    today = mess_today()
    expired = Student.objects.filter(is_active=True, subscription_end_date__lt=today)
    students = list(expired.values_list('short_id', 'tg_user_id', 'subscription_end_date'))

    count = expired.update(is_active=False)
    if not count:
        return 0

    AuditLog.objects.create(
        actor_type='SYSTEM',
        event_type='SUBSCRIPTIONS_EXPIRED',
        payload={'short_ids': [short_id for short_id, _, _ in students]}
    )
    for _, tg_user_id, end_date in students:
        if tg_user_id:
            send_subscription_expired_notification.delay(tg_user_id, end_date.isoformat())

    logger.info("Deactivated %s expired subscriptions", count)
    return count
