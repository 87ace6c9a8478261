from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from decouple import config

from core.services.snapshots import ROLE_DIRECTOR


class Command(BaseCommand):
    help = 'Create the superuser named by DJANGO_SUPERUSER_USERNAME unless it already exists.'

    def handle(self, *args, **options):
        User = get_user_model()
        username = config('DJANGO_SUPERUSER_USERNAME', default='')
        email = config('DJANGO_SUPERUSER_EMAIL', default='')
        password = config('DJANGO_SUPERUSER_PASSWORD', default='')
        if not username or not password:
            raise CommandError('DJANGO_SUPERUSER_USERNAME and DJANGO_SUPERUSER_PASSWORD must be set.')

        if not User.objects.filter(username=username).exists():
            User.objects.create_superuser(username=username, email=email, password=password, role=ROLE_DIRECTOR)
            self.stdout.write(self.style.SUCCESS("Superuser created."))
        else:
            self.stdout.write("Superuser already exists.")
