"""Development settings."""
from .base import *  # noqa
from decouple import config

DEBUG = True
SECRET_KEY = config('DJANGO_SECRET_KEY', default='dev-secret-key')
ALLOWED_HOSTS = ['*']
