"""Product Repository - Product catalog reads."""
from typing import Optional
from .base import BaseRepository
from storefront.services.models import Product


class ProductRepository(BaseRepository):
    """Product database operations."""

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        """Get product by ID, including its current stock counter."""
        result = await self.client.table("products").select(
            "id,name,price,image_url,stock,status"
        ).eq("id", product_id).limit(1).execute()

        if not result.data:
            return None
        return Product(**result.data[0])
