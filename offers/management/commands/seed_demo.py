from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from accounts.models import ROLE_ADMIN, ROLE_USER
from offers.models import Landing, Offer


DEMO_USERS = [
    ('admin@example.com', 'Admin', ROLE_ADMIN),
    ('user@example.com', 'Viewer', ROLE_USER),
]

# (offer fields, [(ext_id, label, type, locale, network_code, url, order), ...])
DEMO_OFFERS = [
    ({
        'vertical': 'Male Enhancement', 'title': 'Proliving', 'price_usd': 44,
        'geo': ['US'], 'tags': ['SS', 'NEW'], 'status': 'ACTIVE',
        'image_url': 'https://cdn.example.com/offers/proliving.png', 'order': 10,
    }, [
        (188, 'Default', 'LANDING', 'EN', 'JL', 'https://example.com/landing/188', 1),
        (274, 'Reddit barbara + quiz', 'PRELANDING', 'ES', 'JL', 'https://example.com/pre/274', 1),
        (275, 'Reddit barbara + quiz', 'PRELANDING', 'EN', 'JL', 'https://example.com/pre/275', 2),
    ]),
    ({
        'vertical': 'Male Enhancement', 'title': 'Titan Surge', 'price_usd': 149,
        'geo': ['US', 'CA'], 'tags': ['CPS', 'Private'], 'status': 'PAUSED',
        'image_url': 'https://cdn.example.com/offers/titan-surge.png', 'order': 20,
    }, [
        (501, 'Default', 'LANDING', 'EN', 'EL', 'https://example.com/ts/landing/501', 1),
        (901, 'Quiz v2', 'PRELANDING', 'EN', 'EL', 'https://example.com/ts/pre/901', 1),
    ]),
    ({
        'vertical': 'Health', 'title': 'Vydox', 'price_usd': 69,
        'geo': ['US'], 'tags': ['CPS'], 'status': 'ACTIVE',
        'image_url': 'https://cdn.example.com/offers/vydox.png', 'order': 30,
    }, [
        (310, 'Default', 'LANDING', 'EN', 'ER', 'https://example.com/vy/landing/310', 1),
    ]),
]


class Command(BaseCommand):
    help = "Create demo accounts, offers and landings for local development"

    def add_arguments(self, parser):
        parser.add_argument('--password', default='demo-pass', help="Password for newly created demo accounts")

    @transaction.atomic
    def handle(self, *args, **options):
        User = get_user_model()
        for email, display_name, role in DEMO_USERS:
            user, created = User.objects.get_or_create(
                email=email, defaults={'display_name': display_name, 'role': role},
            )
            if created:
                user.set_password(options['password'])
                user.save()
                self.stdout.write(f"Created {role.lower()} account: {email}")
            else:
                self.stdout.write(f"Account already exists: {email}")

        for fields, landings in DEMO_OFFERS:
            offer, created = Offer.objects.get_or_create(title=fields['title'], defaults=fields)
            if not created:
                self.stdout.write(f"Offer already exists: {offer.title}")
                continue
            Landing.objects.bulk_create([
                Landing(
                    offer=offer, ext_id=ext_id, label=label, type=landing_type, locale=locale,
                    network_code=network_code, url=url, order=order,
                )
                for ext_id, label, landing_type, locale, network_code, url, order in landings
            ])
            self.stdout.write(f"Created offer {offer.title} with {len(landings)} landings")

        self.stdout.write(self.style.SUCCESS("Demo data ready"))
