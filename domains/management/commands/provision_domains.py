from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from domains.cloudflare import CloudflareClient, NamecheapClient
from domains.provisioning import parse_domain_list, provision_domains


class Command(BaseCommand):
    help = (
        "Onboard domains: create the Cloudflare zone, reset DNS to one proxied A record, "
        "delegate nameservers at Namecheap and add the domain to the pool"
    )

    def add_arguments(self, parser):
        parser.add_argument('domains', nargs='*', help="Domains to provision")
        parser.add_argument('--file', help="Read domains from a file, one per line")
        parser.add_argument('--target-ip', required=True, help="IP address for the A record")
        parser.add_argument('--cost', help="Cost recorded for each new domain")
        parser.add_argument('--cloudflare-email', default=settings.CLOUDFLARE_EMAIL)
        parser.add_argument('--cloudflare-api-key', default=settings.CLOUDFLARE_API_KEY)
        parser.add_argument('--namecheap-api-user', default=settings.NAMECHEAP_API_USER)
        parser.add_argument('--namecheap-api-key', default=settings.NAMECHEAP_API_KEY)
        parser.add_argument('--namecheap-username', default=settings.NAMECHEAP_USERNAME)
        parser.add_argument('--client-ip', default=settings.NAMECHEAP_CLIENT_IP)
        parser.add_argument('--min-delay', type=int, default=settings.CLOUDFLARE_SETUP_DELAY[0])
        parser.add_argument('--max-delay', type=int, default=settings.CLOUDFLARE_SETUP_DELAY[1])

    def handle(self, *args, **options):
        domains = list(options['domains'])
        if options['file']:
            with open(options['file'], encoding='utf-8') as handle:
                domains += parse_domain_list(handle.read())
        if not domains:
            raise CommandError("No domains given")

        required = [
            'cloudflare_email', 'cloudflare_api_key', 'namecheap_api_user',
            'namecheap_api_key', 'namecheap_username', 'client_ip',
        ]
        missing = [name for name in required if not options[name]]
        if missing:
            raise CommandError(f"Missing credentials: {', '.join(missing)}")

        cost = None
        if options['cost']:
            try:
                cost = Decimal(options['cost'])
            except InvalidOperation:
                raise CommandError(f"Invalid cost: {options['cost']}")

        if options['min_delay'] > options['max_delay']:
            raise CommandError("--min-delay must not exceed --max-delay")

        results = provision_domains(
            domains,
            cost=cost,
            cloudflare=CloudflareClient(options['cloudflare_email'], options['cloudflare_api_key']),
            namecheap=NamecheapClient(
                options['namecheap_api_user'], options['namecheap_api_key'],
                options['namecheap_username'], options['client_ip'],
            ),
            target_ip=options['target_ip'],
            delay_range=(options['min_delay'], options['max_delay']),
        )

        added = 0
        for result in results:
            for line in result['logs']:
                self.stdout.write(line)
            if result.get('database', {}).get('success'):
                added += 1
        self.stdout.write(self.style.SUCCESS(f"{added}/{len(results)} domains ready"))
