"""
WSGI config for office_kpi project.

It exposes the WSGI callable as a module-level variable named ``application``.

For more information on this file, see
https://docs.djangoproject.com/en/5.1/howto/deployment/wsgi/
"""

import os

from django.core.wsgi import get_wsgi_application

# Defaults to the development settings; set DJANGO_SETTINGS_MODULE for production.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'office_kpi.settings')

application = get_wsgi_application()
