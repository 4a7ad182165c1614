from models.product import ProductDTO
from storefront_api.api_client import StorefrontApiClient


class CatalogService:
    def __init__(self, api: StorefrontApiClient):
        self.api = api

    async def get_all_products(self) -> list[ProductDTO]:
        body = await self.api.fetch_api_request("/products")
        return [ProductDTO.model_validate(product) for product in body or []]

    async def get_product(self, product_id: int) -> ProductDTO:
        body = await self.api.fetch_api_request(f"/products/{product_id}")
        return ProductDTO.model_validate(body)
