from django.core.management.base import BaseCommand
from django.db import transaction

from offers.models import Geo, Language, OfferType, Partner, Vertical


VERTICALS = [
    ('Male Enhancement', "Men's health"),
    ('Health', 'Health'),
    ('Beauty', 'Beauty'),
    ('Weight Loss', 'Weight loss'),
    ('Crypto', 'Cryptocurrencies'),
    ('Finance', 'Finance'),
    ('Dating', 'Dating'),
    ('CBD', 'CBD products'),
    ('Nutra', 'Nutraceuticals'),
    ('Sweepstakes', 'Sweepstakes'),
]

OFFER_TYPES = [
    ('Trial', 'Trial version'),
    ('SS', 'Straight Sale'),
    ('CPS', 'Cost Per Sale'),
    ('Private', 'Private offer'),
    ('NEW', 'New offer'),
    ('HOT', 'Hot offer'),
    ('BEST', 'Best offer'),
    ('TOP', 'Top offer'),
    ('SALE', 'Sale'),
    ('Premium', 'Premium offer'),
]

GEOS = [
    ('US', 'United States'), ('CA', 'Canada'), ('UK', 'United Kingdom'), ('AU', 'Australia'),
    ('DE', 'Germany'), ('FR', 'France'), ('ES', 'Spain'), ('IT', 'Italy'),
    ('NL', 'Netherlands'), ('SE', 'Sweden'), ('NO', 'Norway'), ('DK', 'Denmark'),
    ('FI', 'Finland'), ('BR', 'Brazil'), ('MX', 'Mexico'), ('AR', 'Argentina'),
    ('CL', 'Chile'), ('CO', 'Colombia'), ('PE', 'Peru'), ('JP', 'Japan'),
    ('KR', 'South Korea'), ('SG', 'Singapore'), ('MY', 'Malaysia'), ('TH', 'Thailand'),
    ('PH', 'Philippines'), ('IN', 'India'),
]

LANGUAGES = [
    ('EN', 'English'), ('ES', 'Spanish'), ('FR', 'French'), ('DE', 'German'),
    ('IT', 'Italian'), ('PT', 'Portuguese'), ('RU', 'Russian'), ('JA', 'Japanese'),
    ('KO', 'Korean'), ('ZH', 'Chinese'), ('AR', 'Arabic'), ('HI', 'Hindi'),
    ('JB', 'Japanese (Beta)'),
]

PARTNERS = [
    ('JL', 'JumpLead'), ('EL', 'EverLead'), ('ER', 'EverReach'), ('TS', 'TrafficStars'),
    ('MW', 'MediaWave'), ('AF', 'AffiliateForce'), ('CJ', 'Commission Junction'),
    ('SH', 'ShareASale'),
]


class Command(BaseCommand):
    help = "Create or refresh the default verticals, offer types, geos, languages and partners"

    @transaction.atomic
    def handle(self, *args, **options):
        for order, (name, description) in enumerate(VERTICALS, start=1):
            Vertical.objects.update_or_create(
                name=name, defaults={'description': description, 'order': order},
            )
        for order, (name, description) in enumerate(OFFER_TYPES, start=1):
            OfferType.objects.update_or_create(
                name=name, defaults={'description': description, 'order': order},
            )
        for model, rows in ((Geo, GEOS), (Language, LANGUAGES), (Partner, PARTNERS)):
            for order, (code, name) in enumerate(rows, start=1):
                model.objects.update_or_create(code=code, defaults={'name': name, 'order': order})

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {len(VERTICALS)} verticals, {len(OFFER_TYPES)} offer types, {len(GEOS)} geos, "
            f"{len(LANGUAGES)} languages and {len(PARTNERS)} partners"
        ))
