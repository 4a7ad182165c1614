from pydantic import BaseModel

from enums.checkout_step import CheckoutStep
from enums.submission_state import SubmissionState
from models.delivery import DeliveryDetailsDTO
from models.order import OrderConfirmationDTO


class CheckoutSessionDTO(BaseModel):
    step: CheckoutStep = CheckoutStep.DETAILS
    deliveryData: DeliveryDetailsDTO | None = None
    paymentProofArtifact: str | None = None  # data:image/jpeg;base64,...
    submissionState: SubmissionState = SubmissionState.IDLE
    lastError: str | None = None
    confirmation: OrderConfirmationDTO | None = None
