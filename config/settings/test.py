# config/settings/test.py - settings for the pytest suite

from .base import *

DEBUG = False

SECRET_KEY = 'test-secret-key'

ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

REST_FRAMEWORK['DEFAULT_THROTTLE_CLASSES'] = []

ELD_WEBHOOK_SECRETS = {
    'samsara': 'samsara-test-secret',
    'keeptruckin': 'keeptruckin-test-secret',
    'geotab': 'geotab-test-secret',
}

ALERTING_WEBHOOK_URL = 'https://alerts.example.test/v1/alerts'

# Run tasks inline; delivery failures are asserted through logs, not raised
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

# caplog listens on the root logger
LOGGING['loggers']['apps']['level'] = 'INFO'
LOGGING['loggers']['apps']['propagate'] = True
