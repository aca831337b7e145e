import base64
from io import BytesIO

from asgiref.sync import sync_to_async
from telegram import Update, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.ext import ContextTypes
from django.utils import timezone

from apps.core.models import Student
from apps.redemption.clock import current_config, local_now
from apps.redemption.codes import code_history, issue_code
from apps.utils.qr_utils import generate_qr_payload, generate_qr_image

STATUS_LABELS = {
    'ACTIVE': '🟢 Active',
    'USED': '⚪ Used',
    'EXPIRED': '🔴 Expired',
}

NOT_LINKED_TEXT = (
    "❌ This Telegram account is not linked to a mess subscription.\n"
    "Ask the mess owner to add your Telegram ID to your profile."
)
INACTIVE_TEXT = "❌ Your subscription is inactive. Contact the mess owner to renew it."


@sync_to_async
def get_linked_student(tg_user_id):
    return Student.objects.filter(tg_user_id=tg_user_id).first()


@sync_to_async
def get_mess_config():
    return current_config()


async def _reply(update: Update, text, **kwargs):
    if update.callback_query:
        await update.callback_query.answer()
    await update.effective_message.reply_text(text, **kwargs)


async def _active_student(update: Update):
    student = await get_linked_student(update.effective_user.id)
    if student is None:
        await _reply(update, NOT_LINKED_TEXT)
        return None
    if not student.is_active:
        await _reply(update, INACTIVE_TEXT)
        return None
    return student


async def start_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command"""
    config = await get_mess_config()
    keyboard = [
        [InlineKeyboardButton("📦 Get Pickup Code", callback_data="code_new")],
        [InlineKeyboardButton("🕘 Recent Codes", callback_data="code_history")],
        [InlineKeyboardButton("📱 My QR Code", callback_data="qr_show")],
    ]

    welcome_text = (
        "🍽️ *Welcome to the Mess*\n\n"
        "Show your QR code or student ID at the counter to log a meal.\n"
        "Can't make it? Generate a pickup code and share it with a friend. "
        f"Codes work once and expire after {config.code_ttl_minutes} minutes."
    )

    await update.effective_message.reply_text(
        welcome_text,
        parse_mode='Markdown',
        reply_markup=InlineKeyboardMarkup(keyboard)
    )


async def code_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Issue a delegated pickup code"""
    student = await _active_student(update)
    if student is None:
        return

    pickup = await sync_to_async(issue_code)(student)
    config = await get_mess_config()
    expires = local_now(pickup.expires_at, config).strftime('%H:%M')

    await _reply(
        update,
        f"📦 *Pickup Code*\n\n`{pickup.code}`\n\n"
        f"Valid once, until {expires}. Whoever shows this code collects your meal.",
        parse_mode='Markdown'
    )


async def history_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Show the most recent pickup codes"""
    student = await get_linked_student(update.effective_user.id)
    if student is None:
        await _reply(update, NOT_LINKED_TEXT)
        return

    codes = await sync_to_async(code_history)(student)
    if not codes:
        await _reply(update, "No pickup codes yet. Use /code to create one.")
        return

    now = timezone.now()
    config = await get_mess_config()
    lines = [
        f"`{pickup.code}` · {local_now(pickup.created_at, config).strftime('%d %b %H:%M')} · "
        f"{STATUS_LABELS[pickup.status(now)]}"
        for pickup in codes
    ]
    await _reply(update, "🕘 *Recent Codes*\n\n" + "\n".join(lines), parse_mode='Markdown')


async def qr_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Send the student's identity QR code"""
    student = await _active_student(update)
    if student is None:
        return

    payload = await sync_to_async(generate_qr_payload)(student.id, student.qr_nonce)
    qr_bytes = base64.b64decode(generate_qr_image(payload))

    if update.callback_query:
        await update.callback_query.answer()
    await context.bot.send_photo(
        chat_id=update.effective_chat.id,
        photo=BytesIO(qr_bytes),
        caption=(
            "📱 *Your Mess QR Code*\n\n"
            "Show this to the staff terminal when collecting your meal."
        ),
        parse_mode='Markdown'
    )
