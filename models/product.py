from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class ProductDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    productId: int
    name: str
    description: str | None = None
    price: Decimal = Field(ge=0)
    imageUrl: str | None = None
    stock: int | None = None  # advisory only, server is authoritative
