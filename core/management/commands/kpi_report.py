from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from core.models import Department
from core.services.kpi_service import Period
from core.services.report_service import build_kpi_report, serialize_report
from core.utils.dates import business_localdate


class Command(BaseCommand):
    help = 'Print the KPI report for a month or a whole year.'

    def add_arguments(self, parser):
        parser.add_argument('--year', type=int, help='Report year (defaults to the current year)')
        parser.add_argument('--month', type=int, help='Report month 1-12; omit for the whole year')
        parser.add_argument('--department', help='Department code to restrict the report to')

    def handle(self, *args, **options):
        year = options.get('year') or business_localdate().year
        month = options.get('month')
        if month is not None and not 1 <= month <= 12:
            raise CommandError('--month must be between 1 and 12.')
        period = Period.for_month(year, month) if month else Period.for_year(year)

        department_id = None
        if options.get('department'):
            try:
                department_id = Department.objects.get(code=options['department']).pk
            except Department.DoesNotExist:
                raise CommandError(f"Unknown department code: {options['department']}")

        report = serialize_report(build_kpi_report(period, department_id=department_id, now=timezone.now()))

        overall = report['overall']
        self.stdout.write(f"KPI report {report['period']['start']} .. {report['period']['end']}")
        self.stdout.write(
            f"Overall: {overall['average_kpi']} over {overall['task_count']} tasks "
            f"({overall['completion_rate']}% completed, {overall['member_count']} people)"
        )

        self.stdout.write("\nBy department:")
        for row in report['by_department']:
            self.stdout.write(
                f"  #{row['rank']} {row['name']}: {row['average_kpi']} "
                f"({row['member_count']} people, {row['task_count']} tasks)"
            )

        self.stdout.write("\nBy user:")
        for row in report['by_user']:
            self.stdout.write(
                f"  #{row['rank']} {row['name']}: {row['average_kpi']} "
                f"({row['completed_count']}/{row['task_count']} completed)"
            )

        self.stdout.write("\nMonthly trend:")
        for point in report['monthly_trend']:
            self.stdout.write(f"  {point['month']}: {point['average_kpi']}")

        self.stdout.write(self.style.SUCCESS("Done."))
