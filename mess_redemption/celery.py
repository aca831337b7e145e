import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'mess_redemption.settings')

app = Celery('mess_redemption')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
