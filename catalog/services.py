"""
Catalog — Service Layer

Existence and activity checks consumed by the document and order engines.

@file catalog/services.py
"""

from uuid import UUID

from .models import Client, PriceList, Product, Provider, Truck


class CatalogService:
    """Narrow read interface over reference data."""

    @staticmethod
    def provider_exists(provider_id) -> bool:
        return Provider.objects.filter(pk=provider_id).exists()

    @staticmethod
    def client_exists(client_id) -> bool:
        return Client.objects.filter(pk=client_id).exists()

    @staticmethod
    def truck_exists(truck_id) -> bool:
        return Truck.objects.filter(pk=truck_id).exists()

    @staticmethod
    def price_lists_exist(price_list_ids) -> bool:
        wanted = {str(pk) for pk in price_list_ids}
        found = PriceList.objects.filter(pk__in=wanted).count()
        return found == len(wanted)

    @staticmethod
    def get_products(product_ids) -> dict[str, Product]:
        """Products keyed by str(pk); missing ids are simply absent."""
        return {
            str(product.pk): product
            for product in Product.objects.filter(pk__in=set(product_ids))
        }

    @staticmethod
    def is_valid_id(value) -> bool:
        try:
            UUID(str(value))
        except (TypeError, ValueError):
            return False
        return True

    @staticmethod
    def canonical_id(value) -> str:
        """Canonical string form of a UUID reference (lower-case, hyphenated)."""
        return str(UUID(str(value)))
