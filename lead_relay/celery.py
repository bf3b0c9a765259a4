"""
Celery configuration for Lead Relay Service.
"""
import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'lead_relay.settings')

app = Celery('lead_relay')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
