"""Settings used by the test suite."""
from .base import *  # noqa

DEBUG = False
SECRET_KEY = 'test-secret-key'
ALLOWED_HOSTS = ['testserver', 'localhost']

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

BUSINESS_TIMEZONE = None
DISMISSAL_STATE_FILE = str(BASE_DIR / '.test_suggestion_dismissals.json')
