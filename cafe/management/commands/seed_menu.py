"""
Management command to create the default café catalog.
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from cafe.domain.order import ItemCategory, ServingType
from cafe.infra.models import MenuItemORM, ProductORM

COFFEES = (
    ("Vanilla Cold Coffee", "vanilla coffee"),
    ("Original Cold Coffee", "coffee"),
    ("Hazelnut Cold Coffee", "hazelnut coffee"),
    ("Mocha Cold Coffee", "mocha coffee"),
    ("Caramel Cold Coffee", "caramel coffee"),
    ("Chocolate Cold Coffee", "chocolate coffee"),
)

SHAKES = (
    ("Chocolate Shake", "chocolate shake"),
    ("KitKat Shake", "kitkat shake"),
    ("Oreo Shake", "oreo shake"),
    ("Strawberry Shake", "strawberry shake"),
    ("Oreo Coffee Shake", "oreo coffee shake"),
)

PRICES = {
    ItemCategory.COFFEE: {ServingType.CONE: Decimal("130.00"), ServingType.CUP: Decimal("150.00")},
    ItemCategory.SHAKES: {ServingType.CONE: Decimal("180.00"), ServingType.CUP: Decimal("200.00")},
}


class Command(BaseCommand):
    help = 'Create the default café products and menu items'

    def add_arguments(self, parser):
        parser.add_argument(
            '--stock',
            type=int,
            default=50,
            help='Initial stock for every newly created menu item',
        )
        parser.add_argument(
            '--reset-stock',
            action='store_true',
            help='Also set existing menu items to the initial stock',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        stock = options['stock']
        reset_stock = options['reset_stock']
        if stock < 0:
            self.stderr.write(self.style.ERROR('--stock must not be negative'))
            return

        created = 0
        catalog = [(ItemCategory.COFFEE, entry) for entry in COFFEES]
        catalog += [(ItemCategory.SHAKES, entry) for entry in SHAKES]
        for category, (name, image_hint) in catalog:
            product, _ = ProductORM.objects.get_or_create(
                name=name,
                defaults={"category": category.value, "image_hint": image_hint},
            )
            for serving_type, price in PRICES[category].items():
                menu_item, was_created = MenuItemORM.objects.get_or_create(
                    product=product,
                    serving_type=serving_type.value,
                    defaults={"price": price, "stock_quantity": stock, "is_available": stock > 0},
                )
                if was_created:
                    created += 1
                elif reset_stock:
                    menu_item.stock_quantity = stock
                    menu_item.is_available = stock > 0
                    menu_item.save()

        self.stdout.write(
            self.style.SUCCESS(f'Seeded {len(catalog)} products, {created} new menu items')
        )
