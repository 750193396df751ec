import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'microlend.settings')

app = Celery('microlend')
app.config_from_object('django.conf:settings', namespace='CELERY')

# Picks up lending_app/tasks.py
app.autodiscover_tasks()
