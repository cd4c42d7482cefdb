#!/usr/bin/env python
"""
Database setup script.

Creates the pricing and ledger tables and seeds a small set of country
settings, a shipping route and customs tiers for local development.

Usage:
    cd /path/to/crossborder_pricing
    python scripts/setup_db.py [--no-seed]
"""

import argparse
import os
import sys
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

SEED_COUNTRIES = [
    {
        "code": "US",
        "name": "United States",
        "currency": "USD",
        "rate_from_usd": Decimal("1"),
        "sales_tax": Decimal("0"),
        "vat": Decimal("0"),
        "min_shipping": Decimal("10.00"),
        "additional_shipping": Decimal("5"),
        "additional_weight": Decimal("2.00"),
        "payment_gateway_percent_fee": Decimal("2.9"),
        "payment_gateway_fixed_fee": Decimal("0.30"),
    },
    {
        "code": "NP",
        "name": "Nepal",
        "currency": "NPR",
        "rate_from_usd": Decimal("134.50"),
        "vat": Decimal("13"),
        "customs_percent": Decimal("10"),
        "min_shipping": Decimal("1345"),
        "additional_shipping": Decimal("5"),
        "additional_weight": Decimal("269"),
    },
    {
        "code": "IN",
        "name": "India",
        "currency": "INR",
        "rate_from_usd": Decimal("83.20"),
        "vat": Decimal("18"),
        "customs_percent": Decimal("20"),
        "min_shipping": Decimal("830"),
        "additional_shipping": Decimal("5"),
        "additional_weight": Decimal("166"),
    },
]

SEED_ROUTE = {
    "origin_country": "US",
    "destination_country": "IN",
    "base_shipping_cost": Decimal("12.00"),
    "cost_per_kg": Decimal("4.50"),
    "cost_percentage": Decimal("1"),
    "weight_tiers": [
        {"min": "0", "max": "1", "cost": "15.00"},
        {"min": "1", "max": "5", "cost": "25.00"},
        {"min": "5", "max": None, "cost": "60.00"},
    ],
    "carriers": [{"name": "DHL", "days": "5-7"}, {"name": "FedEx", "days": "4-6"}],
    "exchange_rate": Decimal("83.20"),
}

SEED_TIERS = [
    {
        "rule_name": "Low value",
        "price_max": Decimal("50"),
        "logic_type": "AND",
        "customs_percentage": Decimal("0"),
        "vat_percentage": Decimal("13"),
        "priority_order": 1,
    },
    {
        "rule_name": "Heavy or expensive",
        "price_min": Decimal("500"),
        "weight_min": Decimal("10"),
        "logic_type": "OR",
        "customs_percentage": Decimal("20"),
        "vat_percentage": Decimal("13"),
        "priority_order": 2,
    },
]


def setup_django() -> None:
    """Setup Django."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings.development")

    import django

    django.setup()


def create_tables() -> None:
    """Create tables for every installed app."""
    from django.core.management import call_command

    print("\nCreating tables...")
    call_command("migrate", run_syncdb=True, verbosity=1)
    print("Tables ready.")


def seed_pricing() -> None:
    """Insert or refresh the development pricing configuration."""
    from apps.pricing.models import CountrySettings, CustomsTier, ShippingRoute

    print("\nSeeding pricing configuration...")
    for country in SEED_COUNTRIES:
        code = country["code"]
        CountrySettings.objects.update_or_create(
            code=code,
            defaults={k: v for k, v in country.items() if k != "code"},
        )

    ShippingRoute.objects.update_or_create(
        origin_country=SEED_ROUTE["origin_country"],
        destination_country=SEED_ROUTE["destination_country"],
        defaults=SEED_ROUTE,
    )

    for tier in SEED_TIERS:
        CustomsTier.objects.update_or_create(
            origin_country="US",
            destination_country="NP",
            rule_name=tier["rule_name"],
            defaults=tier,
        )
    print(
        f"Seeded {len(SEED_COUNTRIES)} countries, 1 route and {len(SEED_TIERS)} customs tiers."
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Setup database")
    parser.add_argument(
        "--no-seed",
        action="store_true",
        help="Only create tables, do not insert development pricing data",
    )
    args = parser.parse_args()

    load_dotenv(project_root / ".env")
    setup_django()

    create_tables()
    if not args.no_seed:
        seed_pricing()

    print("\nDatabase setup complete!")
