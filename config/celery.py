"""
Celery configuration for the ELD compliance project.
"""
import os
from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.production')

app = Celery('eld_compliance')

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
app.config_from_object('django.conf:settings', namespace='CELERY')

# Load task modules from all registered Django apps.
app.autodiscover_tasks()


@app.on_after_finalize.connect
def setup_periodic_tasks(sender, **kwargs):
    from django.conf import settings

    sender.conf.beat_schedule = {
        'scan-hos-exceptions': {
            'task': 'apps.eld.tasks.scan_hos_exceptions',
            'schedule': float(settings.ELD_HOS_SCAN_INTERVAL_SECONDS),
        },
    }


app.conf.timezone = 'UTC'
