import asyncio
import logging

from enums.checkout_step import CheckoutStep
from enums.submission_state import SubmissionState
from exceptions.api import OrderSubmissionException
from exceptions.checkout import (
    DuplicateSubmissionException,
    EmptyCartException,
    InvalidCheckoutStateException,
    LoginRequiredException,
    OutOfStockException,
)
from models.checkout import CheckoutSessionDTO
from models.delivery import DeliveryDetailsDTO
from models.order import OrderConfirmationDTO, OrderItemDTO, OrderPayloadDTO
from models.user import UserDTO
from services.affiliate import AffiliateService
from services.cart import CartManager
from services.order import OrderClient
from services.payment_proof import PaymentProofService
from utils.checkout_state_machine import CheckoutStateMachine
from utils.delivery_validation import validate_delivery_form

logger = logging.getLogger(__name__)


class CheckoutFlowController:
    """
    Two-step checkout: delivery details, then payment proof and submission.

    One controller drives one checkout session and issues at most one order
    request at a time. The cart is only cleared after the server confirmed
    the order; a failed submission leaves cart, delivery details and payment
    proof untouched so the user can retry.
    """

    def __init__(self, cart: CartManager, buyer: UserDTO, order_client: OrderClient,
                 affiliates: AffiliateService, proof_service: type[PaymentProofService] = PaymentProofService):
        self.cart = cart
        self.buyer = buyer
        self.order_client = order_client
        self.affiliates = affiliates
        self.proof_service = proof_service
        self.session = CheckoutSessionDTO()
        self._closed = False
        # bumped whenever the current proof is discarded so late compressions are dropped
        self._proof_generation = 0

    @classmethod
    def open(cls, cart: CartManager, buyer: UserDTO | None, order_client: OrderClient,
             affiliates: AffiliateService,
             proof_service: type[PaymentProofService] = PaymentProofService) -> "CheckoutFlowController":
        """
        Start a checkout session if the entry guards pass.

        Raises:
            EmptyCartException: Cart has no lines
            OutOfStockException: A line asks for more than its advisory stock
            LoginRequiredException: No logged-in storefront user
        """
        cls.check_entry(cart, buyer)
        logger.info(f"Checkout opened for user {cart.owner_id} with {len(cart.lines)} line(s)")
        return cls(cart, buyer, order_client, affiliates, proof_service)

    @staticmethod
    def check_entry(cart: CartManager, buyer: UserDTO | None):
        if cart.is_empty:
            raise EmptyCartException(cart.owner_id)

        for line in cart.lines:
            if line.exceeds_stock():
                raise OutOfStockException(line.productId, line.productName, line.quantity, line.stock)

        if buyer is None:
            raise LoginRequiredException(cart.owner_id)

    @property
    def step(self) -> CheckoutStep:
        return self.session.step

    @property
    def submission_state(self) -> SubmissionState:
        return self.session.submissionState

    @property
    def delivery_data(self) -> DeliveryDetailsDTO | None:
        return self.session.deliveryData

    @property
    def payment_proof(self) -> str | None:
        return self.session.paymentProofArtifact

    @property
    def confirmation(self) -> OrderConfirmationDTO | None:
        return self.session.confirmation

    @property
    def last_error(self) -> str | None:
        return self.session.lastError

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def can_submit(self) -> bool:
        return (
            not self._closed
            and self.session.step == CheckoutStep.PAYMENT
            and self.session.deliveryData is not None
            and self.session.paymentProofArtifact is not None
            and self.session.submissionState in (SubmissionState.IDLE, SubmissionState.FAILED)
        )

    def submit_details(self, form: dict) -> DeliveryDetailsDTO:
        """
        Validate the delivery form and move on to the payment step.

        Raises:
            DeliveryValidationException: Field-level errors, step stays DETAILS
            InvalidCheckoutStateException: Not on the details step
        """
        self._ensure_open("submit delivery details")
        if self.session.step != CheckoutStep.DETAILS:
            raise InvalidCheckoutStateException(self.session.step.value, "submit delivery details")

        details = validate_delivery_form(form)
        self.session.deliveryData = details
        self._set_step(CheckoutStep.PAYMENT)
        return details

    async def attach_payment_proof(self, content: bytes, content_type: str | None,
                                   size: int | None = None) -> str | None:
        """
        Validate, compress and hold a payment proof image.

        Replaces any proof attached before.

        Returns:
            The compressed data URI, or None if the user left the payment step
            while the image was being compressed

        Raises:
            UnsupportedProofTypeException: Not a PNG/JPEG upload
            ProofTooLargeException: Larger than 2 MiB
            ProofProcessingException: Not a decodable image
        """
        self._ensure_payment_editable("attach payment proof")
        generation = self._proof_generation

        artifact = await self.proof_service.prepare(content, content_type, size)

        if (self._closed
                or generation != self._proof_generation
                or self.session.step != CheckoutStep.PAYMENT
                or self.session.submissionState in (SubmissionState.SUBMITTING, SubmissionState.SUCCEEDED)):
            logger.info(f"Discarding payment proof of user {self.cart.owner_id} compressed after leaving payment step")
            return None

        self.session.paymentProofArtifact = artifact
        logger.info(f"Payment proof attached for user {self.cart.owner_id}")
        return artifact

    def remove_payment_proof(self):
        self._ensure_payment_editable("remove payment proof")
        self.session.paymentProofArtifact = None
        self._proof_generation += 1

    def back_to_details(self):
        """
        Return to the details step.

        The payment proof is discarded and has to be uploaded again; delivery
        details are kept as defaults for the form.
        """
        self._ensure_payment_editable("go back to delivery details")
        self.session.paymentProofArtifact = None
        self._proof_generation += 1
        if self.session.submissionState == SubmissionState.FAILED:
            self._set_submission_state(SubmissionState.IDLE)
            self.session.lastError = None
        self._set_step(CheckoutStep.DETAILS)

    async def submit(self) -> OrderConfirmationDTO:
        """
        Send the order. Exactly one request is issued per call; calls made
        while a request is in flight are rejected without reaching the client.

        Raises:
            DuplicateSubmissionException: A submission is already in flight
            InvalidCheckoutStateException: Missing delivery details or payment proof, or already submitted
            EmptyCartException: Cart was emptied during checkout
            OrderSubmissionException: Server rejected the order (message verbatim)
        """
        self._ensure_open("submit the order")
        state = self.session.submissionState
        if state == SubmissionState.SUBMITTING:
            logger.warning(f"Ignoring duplicate order submission from user {self.cart.owner_id}")
            raise DuplicateSubmissionException()
        if (state == SubmissionState.SUCCEEDED
                or self.session.step != CheckoutStep.PAYMENT
                or self.session.deliveryData is None
                or self.session.paymentProofArtifact is None):
            raise InvalidCheckoutStateException(f"{self.session.step.value}/{state.value}", "submit the order")
        if self.cart.is_empty:
            raise EmptyCartException(self.cart.owner_id)

        # must be set before the first await to lock out double submits
        self._set_submission_state(SubmissionState.SUBMITTING)
        self.session.lastError = None

        try:
            payload = await self._build_payload()
            confirmation = await self.order_client.create_order(payload)
        except OrderSubmissionException as e:
            self._fail(e.message)
            raise
        except asyncio.CancelledError:
            self._fail("Order submission was cancelled")
            raise
        except Exception as e:
            logger.error(f"Unexpected error submitting order for user {self.cart.owner_id}: {e}", exc_info=True)
            self._fail(str(e))
            raise OrderSubmissionException(str(e)) from e

        self.session.confirmation = confirmation
        self._set_submission_state(SubmissionState.SUCCEEDED)
        await self.cart.clear_cart()
        await self.affiliates.clear_attribution(self.cart.owner_id)
        return confirmation

    def close(self):
        """Abandon the checkout session. The cart is not touched."""
        if not self._closed:
            self._closed = True
            self._proof_generation += 1
            logger.info(f"Checkout closed for user {self.cart.owner_id} in state "
                        f"{self.session.step.value}/{self.session.submissionState.value}")

    async def _build_payload(self) -> OrderPayloadDTO:
        attribution = await self.affiliates.resolve_attribution(self.cart.owner_id)
        details = self.session.deliveryData

        # lines and total are read together with no await in between
        items = [
            OrderItemDTO(
                productId=line.productId,
                quantity=line.quantity,
                price=line.price,
                sellerId=attribution.sellerId
            )
            for line in self.cart.lines
        ]
        return OrderPayloadDTO(
            buyerId=self.buyer.id,
            items=items,
            totalAmount=self.cart.get_total(),
            paymentProofUrl=self.session.paymentProofArtifact,
            deliveryAddress=details.delivery_address,
            deliveryPhone=details.phone,
            deliveryName=details.name,
            deliveryEmail=details.email,
            affiliateCode=attribution.affiliateCode
        )

    def _fail(self, message: str):
        self.session.lastError = message
        self._set_submission_state(SubmissionState.FAILED)
        logger.warning(f"Order submission failed for user {self.cart.owner_id}: {message}")

    def _ensure_open(self, operation: str):
        if self._closed:
            raise InvalidCheckoutStateException("CLOSED", operation)

    def _ensure_payment_editable(self, operation: str):
        self._ensure_open(operation)
        state = self.session.submissionState
        if self.session.step != CheckoutStep.PAYMENT or state in (SubmissionState.SUBMITTING,
                                                                  SubmissionState.SUCCEEDED):
            raise InvalidCheckoutStateException(f"{self.session.step.value}/{state.value}", operation)

    def _set_step(self, step: CheckoutStep):
        if not CheckoutStateMachine.validate_and_log_transition(self.cart.owner_id, self.session.step, step):
            raise InvalidCheckoutStateException(self.session.step.value, f"move to {step.value}")
        self.session.step = step

    def _set_submission_state(self, state: SubmissionState):
        current = self.session.submissionState
        if not CheckoutStateMachine.validate_and_log_transition(self.cart.owner_id, current, state):
            raise InvalidCheckoutStateException(current.value, f"move to {state.value}")
        self.session.submissionState = state
