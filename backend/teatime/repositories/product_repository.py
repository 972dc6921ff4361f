from typing import Any

from ..models import Product
from .repository import Repository


class ProductRepository(Repository[Product]):
    model = Product

    def update(self, product: Product, data: dict[str, Any]) -> Product:
        """Apply partial field updates; a blank image_url keeps the current image."""
        updatable_fields = {"name", "description", "size", "price", "category_id", "image_url"}
        for field, value in data.items():
            if field not in updatable_fields:
                continue
            if field == "image_url" and not value:
                continue
            setattr(product, field, value)
        return product
