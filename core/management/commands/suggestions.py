from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from core.models import CustomUser, Task
from core.services.dismissals import DismissalThrottle, JsonFileDismissalStore
from core.services.snapshots import ROLE_DEPARTMENT_HEAD, ROLE_DIRECTOR
from core.services.suggestions import build_suggestions


class Command(BaseCommand):
    help = (
        'Show dashboard suggestions for a user. Categories dismissed three times '
        'are hidden; dismissals are kept in DISMISSAL_STATE_FILE.'
    )

    def add_arguments(self, parser):
        parser.add_argument('username')
        parser.add_argument('--dismiss', metavar='CATEGORY', help='Record one dismissal of a suggestion category')
        parser.add_argument('--state-file', help='Override DISMISSAL_STATE_FILE')

    def handle(self, *args, **options):
        throttle = DismissalThrottle(JsonFileDismissalStore(options.get('state_file') or settings.DISMISSAL_STATE_FILE))

        if options.get('dismiss'):
            category = options['dismiss']
            count = throttle.record_dismissal(category)
            state = 'hidden from now on' if throttle.is_blacklisted(category) else 'still shown'
            self.stdout.write(f"Dismissed {category} ({count}x, {state}).")
            return

        try:
            user = CustomUser.objects.get(username=options['username'])
        except CustomUser.DoesNotExist:
            raise CommandError(f"Unknown user: {options['username']}")

        tasks = Task.objects.alive().with_assignments()
        if user.role == ROLE_DEPARTMENT_HEAD and user.department_id is not None:
            tasks = tasks.for_department(user.department_id)
        elif user.role != ROLE_DIRECTOR:
            tasks = tasks.for_user(user)
        users = {u.pk: u.to_snapshot() for u in CustomUser.objects.order_by('id')}

        suggestions = build_suggestions(user.to_snapshot(), [t.to_snapshot() for t in tasks], timezone.now(), users)
        shown = throttle.filter_suggestions(s.as_dict() for s in suggestions)
        if not shown:
            self.stdout.write("No suggestions.")
            return
        for suggestion in shown:
            self.stdout.write(f"[{suggestion['priority']}] {suggestion['type']}: {suggestion['title']}")
            self.stdout.write(f"    {suggestion['content']}")
            if suggestion['details']:
                for line in suggestion['details'].splitlines():
                    self.stdout.write(f"    {line}")
