from pydantic import BaseModel, ConfigDict


class AffiliateInfoDTO(BaseModel):
    affiliateUserId: int | None = None
    affiliateCode: str
    timestamp: int  # epoch milliseconds when the link was followed


class AffiliateLookupDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    affiliateUserId: int
    code: str
    username: str | None = None


class AttributionDTO(BaseModel):
    sellerId: int | None = None
    affiliateCode: str | None = None
