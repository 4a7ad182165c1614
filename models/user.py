from pydantic import BaseModel, ConfigDict


class UserDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    username: str
    email: str | None = None
    phone: str | None = None
    isActive: bool = True
    role: str | None = None
    referralCode: str | None = None
    affiliateCode: str | None = None


class AuthResponseDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    token: str
    user: UserDTO
    referralCode: str | None = None
    affiliateCode: str | None = None
    referralLink: str | None = None
