import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "assistdesk.settings.dev")

app = Celery("assistdesk")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
