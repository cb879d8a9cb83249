"""
Test settings: SQLite, in-memory cache, eager Celery, throwaway media root.
"""

import tempfile

from .settings import *  # noqa: F401,F403

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

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

MEDIA_ROOT = tempfile.mkdtemp(prefix='domicilios-media-')

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

LEDGER_RETRY_BACKOFF = 0

SHOPIFY_STORE_DOMAIN = 'tienda-test.myshopify.com'
SHOPIFY_ADMIN_TOKEN = 'shpat_test'
