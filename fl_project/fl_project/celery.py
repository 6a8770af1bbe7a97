""" Workers and beat run with "celery -A fl_project worker -B -l info".
    Recurring templates are materialized by the beat entry declared in
    settings.CELERY_BEAT_SCHEDULE. """
from __future__ import annotations
import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "fl_project.settings")

celery_app = Celery("fl_project")

# read config from Django settings, using CELERY_ prefix
celery_app.config_from_object("django.conf:settings", namespace="CELERY")

# picks up ledger_core.tasks
celery_app.autodiscover_tasks()
