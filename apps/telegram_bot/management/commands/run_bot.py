from django.core.management.base import BaseCommand, CommandError
from django.conf import settings

from apps.telegram_bot.bot import TelegramBot


class Command(BaseCommand):
    help = "Run the student Telegram bot (long polling)"

    def handle(self, *args, **options):
        if not settings.TELEGRAM_BOT_TOKEN:
            raise CommandError("TELEGRAM_BOT_TOKEN is not set")
        self.stdout.write("Bot running, press Ctrl+C to stop")
        TelegramBot().run()
