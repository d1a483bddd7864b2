"""
Distribuidora — Celery Application

Workers and beat load settings from Django; periodic schedules come from
django-celery-beat's DatabaseScheduler, seeded by CELERY_BEAT_SCHEDULE.

@file config/celery.py
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('distribuidora')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
