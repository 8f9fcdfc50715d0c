"""
Celery configuration for background tasks.

Used for the periodic sweeps of dead access tokens and stale rate limit
counters. Neither store runs a background thread of its own.
"""
import os

from celery import Celery
from celery.schedules import crontab

# Set default Django settings module
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "DocumentAccessService.settings.base")

app = Celery("DocumentAccessService")

# Load configuration from Django settings
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all installed apps
app.autodiscover_tasks()

app.conf.beat_schedule = {
    "sweep-access-tokens": {
        "task": "core.tasks.sweep_access_tokens_task",
        "schedule": crontab(minute="*/15"),
    },
    "cleanup-rate-limits": {
        "task": "core.tasks.cleanup_rate_limits_task",
        "schedule": crontab(minute=0),
    },
}
