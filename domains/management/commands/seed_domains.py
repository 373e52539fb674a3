from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from domains.forms import validate_domain, validate_domain_length
from domains.models import Domain


SAMPLE_DOMAINS = [
    'example1.com',
    'example2.com',
    'example3.com',
    'testdomain.net',
    'mydomain.org',
    'sample-site.com',
    'demo-domain.net',
    'test-website.org',
]


class Command(BaseCommand):
    help = "Add domains to the pool (sample domains when none are given)"

    def add_arguments(self, parser):
        parser.add_argument('domains', nargs='*', help="Domains to add")

    def handle(self, *args, **options):
        for name in options['domains'] or SAMPLE_DOMAINS:
            try:
                validate_domain_length(name)
                validate_domain(name)
            except ValidationError as e:
                raise CommandError(f"Invalid domain {name}: {e.messages[0]}") from e
            _, created = Domain.objects.get_or_create(domain=name)
            if created:
                self.stdout.write(f"Created domain: {name}")
            else:
                self.stdout.write(f"Domain already exists: {name}")

        self.stdout.write(self.style.SUCCESS(f"Seeding completed! Total domains: {Domain.objects.count()}"))
