# Celery instance is defined in fl_project/celery.py
# Exposed here so "celery -A fl_project worker" finds it
from .celery import celery_app

__all__ = ("celery_app",)
