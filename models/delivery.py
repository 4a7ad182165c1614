from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.delivery_validation import EMAIL_PATTERN, PHONE_PATTERN, PINCODE_PATTERN


class DeliveryDetailsDTO(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2)
    phone: str
    email: str
    doorNo: str | None = None
    area: str | None = None
    landmark: str | None = None
    city: str = Field(min_length=1)
    district: str = Field(min_length=1)
    pincode: str

    @field_validator("doorNo", "area", "landmark", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str) -> str:
        if not PHONE_PATTERN.match(value):
            raise ValueError("phone must be a 10-digit number")
        return value

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        if not EMAIL_PATTERN.match(value):
            raise ValueError("invalid email address")
        return value

    @field_validator("pincode")
    @classmethod
    def validate_pincode(cls, value: str) -> str:
        if not PINCODE_PATTERN.match(value):
            raise ValueError("pincode must be a 6-digit number")
        return value

    @property
    def delivery_address(self) -> str:
        """
        Single-line address: door, area, landmark, then "city, district - pincode".
        Empty optional parts are skipped.
        """
        parts = [self.doorNo, self.area, self.landmark, f"{self.city}, {self.district} - {self.pincode}"]
        return ", ".join(part for part in parts if part)
