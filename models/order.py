from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_serializer


class OrderItemDTO(BaseModel):
    productId: int
    quantity: int
    price: Decimal
    sellerId: int | None = None

    @field_serializer("price", when_used="json")
    def serialize_price(self, price: Decimal) -> float:
        return float(price)


class OrderPayloadDTO(BaseModel):
    buyerId: int
    items: list[OrderItemDTO]
    totalAmount: Decimal
    paymentProofUrl: str
    deliveryAddress: str
    deliveryPhone: str
    deliveryName: str
    deliveryEmail: str
    affiliateCode: str | None = None

    @field_serializer("totalAmount", when_used="json")
    def serialize_total(self, total: Decimal) -> float:
        return float(total)


class OrderConfirmationDTO(BaseModel):
    # status values (PENDING/PAID/REJECTED) are owned by the server and only displayed
    model_config = ConfigDict(extra="ignore")

    # None when the server accepted the order but its reply could not be read
    orderId: int | None = None
    totalAmount: Decimal | None = Field(default=None, validation_alias=AliasChoices("totalAmount", "amount"))
    status: str | None = None
    items: list[dict] = Field(default_factory=list)
    deliveryName: str | None = None
    deliveryAddress: str | None = None
    deliveryPhone: str | None = None
    deliveryEmail: str | None = None
    createdAt: str | None = None
