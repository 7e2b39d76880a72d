"""
Read-only storefront menu.
"""
from __future__ import annotations

from cafe.domain.results import returns_result
from cafe.infra.repositories import CatalogRepository


class CatalogService:

    def __init__(self, catalog_repo: CatalogRepository | None = None):
        self.catalog_repo = catalog_repo or CatalogRepository()

    @returns_result
    def list_menu(self) -> dict:
        """Available products that still have at least one sellable serving."""
        products = [
            product
            for product in self.catalog_repo.list_available_menu()
            if product.menu_items.all()
        ]
        return {"products": products}
