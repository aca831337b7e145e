from django.apps import AppConfig


class RedemptionConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.redemption'

    def ready(self):
        from . import receivers  # noqa: F401
