import asyncio
from celery import shared_task
import telegram
from django.conf import settings
from apps.core.models import AuditLog
import logging

logger = logging.getLogger(__name__)


def _preview(text):
    return text[:100] + '...' if len(text) > 100 else text


async def _deliver(chat_id, text, parse_mode):
    bot = telegram.Bot(token=settings.TELEGRAM_BOT_TOKEN)
    async with bot:
        await bot.send_message(chat_id=chat_id, text=text, parse_mode=parse_mode)


@shared_task(bind=True, max_retries=3)
def send_telegram_message(self, chat_id, text, parse_mode='Markdown'):
    """Send Telegram message with retry logic"""
    try:
        asyncio.run(_deliver(chat_id, text, parse_mode))

        AuditLog.objects.create(
            actor_type='SYSTEM',
            event_type='NOTIFICATION_SENT',
            payload={
                'chat_id': chat_id,
                'message': _preview(text)
            }
        )

    except telegram.error.TelegramError as exc:
        logger.error(f"Failed to send Telegram message: {exc}")

        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc, countdown=60 * (2 ** self.request.retries))

        AuditLog.objects.create(
            actor_type='SYSTEM',
            event_type='NOTIFICATION_FAILED',
            payload={
                'chat_id': chat_id,
                'error': str(exc),
                'message': _preview(text)
            }
        )


@shared_task
def send_meal_logged_notification(tg_user_id, meal, access_method, logged_at):
    """Tell the student a meal was logged against their subscription"""
    meal_emoji = {
        'LUNCH': '☀️',
        'DINNER': '🌙'
    }
    via = 'your pickup code' if access_method == 'DELEGATED_CODE' else 'your student ID'

    text = (
        f"🍽️ *Meal Logged*\n\n"
        f"{meal_emoji.get(meal, '🍽️')} {meal.title()} collected with {via}\n"
        f"⏰ Time: {logged_at}\n\n"
        f"Not you? Contact the mess owner."
    )

    send_telegram_message.delay(tg_user_id, text)


@shared_task
def send_subscription_expired_notification(tg_user_id, end_date):
    """Sent by the nightly expiry job"""
    text = (
        f"⌛ *Subscription Ended*\n\n"
        f"Your mess subscription ended on {end_date}. "
        f"Meals can no longer be logged until the owner renews it."
    )

    send_telegram_message.delay(tg_user_id, text)
