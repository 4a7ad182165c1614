# a cart line is one product's presence in the cart. name and price are snapshotted
# when the product is added and are never refreshed from the catalog.
#
# stock is the advisory stock seen at add time. it is only used for warnings and the
# checkout entry guard, the server re-checks real stock when the order is created
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class CartLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    productId: int
    productName: str
    price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)
    imageUrl: str | None = None
    stock: int | None = None

    @field_serializer("price", when_used="json")
    def serialize_price(self, price: Decimal) -> float:
        return float(price)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def exceeds_stock(self) -> bool:
        return self.stock is not None and self.quantity > self.stock
