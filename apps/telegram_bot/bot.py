import logging
from telegram.ext import Application, CommandHandler, CallbackQueryHandler
from django.conf import settings
from .handlers import start_handler, code_handler, history_handler, qr_handler

logger = logging.getLogger(__name__)


class TelegramBot:
    def __init__(self, token=None):
        self.application = Application.builder().token(token or settings.TELEGRAM_BOT_TOKEN).build()
        self.setup_handlers()

    def setup_handlers(self):
        """Setup all bot handlers"""
        # Commands
        self.application.add_handler(CommandHandler("start", start_handler))
        self.application.add_handler(CommandHandler("code", code_handler))
        self.application.add_handler(CommandHandler("codes", history_handler))
        self.application.add_handler(CommandHandler("qr", qr_handler))

        # Callback query handlers
        self.application.add_handler(CallbackQueryHandler(code_handler, pattern="^code_new$"))
        self.application.add_handler(CallbackQueryHandler(history_handler, pattern="^code_history$"))
        self.application.add_handler(CallbackQueryHandler(qr_handler, pattern="^qr"))

    def get_application(self):
        return self.application

    def run(self):
        logger.info("Starting Telegram bot polling")
        self.application.run_polling()
