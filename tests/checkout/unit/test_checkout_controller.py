"""
Unit Tests: CheckoutFlowController

Tests for services/checkout.py covering:
- Entry guards (empty cart, stock, login) and their order
- Delivery details step
- Payment proof attachment, replacement and removal
- Order submission: payload, single request per submit, failure and retry
- Back navigation and closing the session
"""

import asyncio
import io
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from PIL import Image

from enums.checkout_step import CheckoutStep
from enums.submission_state import SubmissionState
from exceptions import (
    DeliveryValidationException,
    DuplicateSubmissionException,
    EmptyCartException,
    InvalidCheckoutStateException,
    LoginRequiredException,
    OrderSubmissionException,
    OutOfStockException,
    ProofTooLargeException,
    UnsupportedProofTypeException,
)
from models.affiliate import AttributionDTO
from models.order import OrderConfirmationDTO
from repositories.cart_store import CartStoreRepository
from services.affiliate import AffiliateService
from services.cart import CartManager
from services.checkout import CheckoutFlowController
from services.order import OrderClient


def make_jpeg(width: int = 640, height: int = 480) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 120, 40)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def store(redis_client):
    return CartStoreRepository(redis_client)


@pytest_asyncio.fixture
async def cart(store, product_factory):
    """Cart holding two G1 Prash at 499.00."""
    manager = CartManager(owner_id=1001, store=store)
    await manager.add_item(product_factory(product_id=5, name="G1 Prash", price="499.00", stock=10), 2)
    return manager


@pytest.fixture
def order_client():
    client = AsyncMock(spec=OrderClient)
    client.create_order.return_value = OrderConfirmationDTO(orderId=9001, totalAmount=Decimal("998.00"),
                                                            status="PENDING")
    return client


@pytest.fixture
def affiliates():
    service = AsyncMock(spec=AffiliateService)
    service.resolve_attribution.return_value = AttributionDTO(sellerId=7, affiliateCode="AFF7")
    return service


@pytest.fixture
def controller(cart, buyer, order_client, affiliates):
    return CheckoutFlowController.open(cart, buyer, order_client, affiliates)


@pytest_asyncio.fixture
async def ready_controller(controller, delivery_form):
    """Controller on the payment step with a proof attached."""
    controller.submit_details(delivery_form)
    await controller.attach_payment_proof(make_jpeg(), "image/jpeg", 500 * 1024)
    return controller


class TestEntryGuards:

    def test_empty_cart_blocks_checkout(self, store, buyer, order_client, affiliates):
        empty_cart = CartManager(1, store)

        with pytest.raises(EmptyCartException) as exc_info:
            CheckoutFlowController.open(empty_cart, buyer, order_client, affiliates)

        assert "cart is empty" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_line_above_stock_blocks_checkout(self, store, buyer, order_client, affiliates,
                                                    product_factory):
        cart = CartManager(1, store)
        await cart.add_item(product_factory(product_id=5, name="G1 Prash", stock=1), 3)

        with pytest.raises(OutOfStockException) as exc_info:
            CheckoutFlowController.open(cart, buyer, order_client, affiliates)

        assert exc_info.value.product_id == 5
        assert exc_info.value.requested == 3
        assert exc_info.value.available == 1

    def test_anonymous_user_must_login(self, cart, order_client, affiliates):
        with pytest.raises(LoginRequiredException) as exc_info:
            CheckoutFlowController.open(cart, None, order_client, affiliates)

        assert exc_info.value.message == "Please login to place an order"

    def test_empty_cart_is_reported_before_login(self, store, order_client, affiliates):
        with pytest.raises(EmptyCartException):
            CheckoutFlowController.open(CartManager(1, store), None, order_client, affiliates)

    def test_new_session_starts_on_details_step(self, controller):
        assert controller.step == CheckoutStep.DETAILS
        assert controller.submission_state == SubmissionState.IDLE
        assert controller.delivery_data is None
        assert controller.payment_proof is None
        assert not controller.can_submit


class TestDeliveryDetails:

    def test_invalid_phone_keeps_details_step(self, controller, delivery_form):
        delivery_form["phone"] = "12345"

        with pytest.raises(DeliveryValidationException) as exc_info:
            controller.submit_details(delivery_form)

        assert list(exc_info.value.errors) == ["phone"]
        assert controller.step == CheckoutStep.DETAILS
        assert controller.delivery_data is None

    def test_valid_details_move_to_payment(self, controller, delivery_form):
        details = controller.submit_details(delivery_form)

        assert controller.step == CheckoutStep.PAYMENT
        assert controller.delivery_data == details
        assert details.landmark is None
        assert details.delivery_address == "12B, MG Road, Bengaluru, Bengaluru Urban - 560001"

    def test_details_cannot_be_submitted_twice(self, controller, delivery_form):
        controller.submit_details(delivery_form)

        with pytest.raises(InvalidCheckoutStateException):
            controller.submit_details(delivery_form)


class TestPaymentProof:

    @pytest.mark.asyncio
    async def test_proof_larger_than_two_mib_is_rejected(self, controller, delivery_form):
        controller.submit_details(delivery_form)
        three_mb_png = b"\x89PNG\r\n\x1a\n" + b"\x00" * (3 * 1024 * 1024)

        with pytest.raises(ProofTooLargeException):
            await controller.attach_payment_proof(three_mb_png, "image/png")

        assert controller.payment_proof is None

    @pytest.mark.asyncio
    async def test_non_image_upload_is_rejected(self, controller, delivery_form):
        controller.submit_details(delivery_form)

        with pytest.raises(UnsupportedProofTypeException):
            await controller.attach_payment_proof(b"%PDF-1.7", "application/pdf")

        assert controller.payment_proof is None

    @pytest.mark.asyncio
    async def test_valid_proof_is_compressed_and_held(self, controller, delivery_form):
        controller.submit_details(delivery_form)

        artifact = await controller.attach_payment_proof(make_jpeg(), "image/jpeg", 500 * 1024)

        assert artifact.startswith("data:image/jpeg;base64,")
        assert controller.payment_proof == artifact
        assert controller.can_submit

    @pytest.mark.asyncio
    async def test_proof_needs_payment_step(self, controller):
        with pytest.raises(InvalidCheckoutStateException):
            await controller.attach_payment_proof(make_jpeg(), "image/jpeg")

    @pytest.mark.asyncio
    async def test_remove_proof(self, ready_controller):
        ready_controller.remove_payment_proof()

        assert ready_controller.payment_proof is None
        assert not ready_controller.can_submit

    @pytest.mark.asyncio
    async def test_proof_finished_after_leaving_payment_step_is_discarded(self, cart, buyer, order_client,
                                                                          affiliates, delivery_form):
        gate = asyncio.Event()

        async def slow_prepare(content, content_type, size=None):
            await gate.wait()
            return "data:image/jpeg;base64,AAAA"

        proof_service = MagicMock()
        proof_service.prepare = AsyncMock(side_effect=slow_prepare)
        controller = CheckoutFlowController.open(cart, buyer, order_client, affiliates, proof_service)
        controller.submit_details(delivery_form)

        pending = asyncio.create_task(controller.attach_payment_proof(b"jpeg", "image/jpeg"))
        await asyncio.sleep(0)
        controller.back_to_details()
        gate.set()

        assert await pending is None
        assert controller.payment_proof is None
        assert controller.step == CheckoutStep.DETAILS


class TestSubmit:

    @pytest.mark.asyncio
    async def test_successful_order_clears_cart(self, ready_controller, cart, store, order_client, affiliates):
        expected_total = cart.get_total()

        confirmation = await ready_controller.submit()

        order_client.create_order.assert_awaited_once()
        payload = order_client.create_order.await_args.args[0]
        assert payload.totalAmount == expected_total == Decimal("998.00")
        assert payload.buyerId == 42
        assert [(item.productId, item.quantity, item.price, item.sellerId) for item in payload.items] == [
            (5, 2, Decimal("499.00"), 7)
        ]
        assert payload.affiliateCode == "AFF7"
        assert payload.paymentProofUrl.startswith("data:image/jpeg;base64,")
        assert payload.deliveryName == "Asha Rao"
        assert payload.deliveryPhone == "9876543210"
        assert payload.deliveryEmail == "asha@example.com"

        assert confirmation.orderId == 9001
        assert ready_controller.confirmation == confirmation
        assert ready_controller.submission_state == SubmissionState.SUCCEEDED
        assert cart.is_empty
        assert await store.load(cart.owner_id) == []
        affiliates.clear_attribution.assert_awaited_once_with(cart.owner_id)

    @pytest.mark.asyncio
    async def test_payload_serializes_amounts_as_numbers(self, ready_controller, order_client):
        await ready_controller.submit()

        body = order_client.create_order.await_args.args[0].model_dump(mode="json")
        assert body["totalAmount"] == 998.0
        assert body["items"][0]["price"] == 499.0

    @pytest.mark.asyncio
    async def test_double_submit_sends_one_request(self, ready_controller, order_client):
        gate = asyncio.Event()

        async def slow_create(payload):
            await gate.wait()
            return OrderConfirmationDTO(orderId=9001)

        order_client.create_order.side_effect = slow_create

        first = asyncio.create_task(ready_controller.submit())
        await asyncio.sleep(0)
        assert ready_controller.submission_state == SubmissionState.SUBMITTING

        with pytest.raises(DuplicateSubmissionException):
            await ready_controller.submit()

        gate.set()
        confirmation = await first

        assert confirmation.orderId == 9001
        order_client.create_order.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_concurrent_submits_send_one_request(self, ready_controller, order_client):
        results = await asyncio.gather(ready_controller.submit(), ready_controller.submit(),
                                       return_exceptions=True)

        assert sum(isinstance(result, OrderConfirmationDTO) for result in results) == 1
        # the loser sees either the in-flight submission or the finished one
        assert sum(isinstance(result, (DuplicateSubmissionException, InvalidCheckoutStateException))
                   for result in results) == 1
        order_client.create_order.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_order_keeps_cart_and_allows_retry(self, ready_controller, cart, order_client):
        lines_before = cart.lines
        proof_before = ready_controller.payment_proof
        order_client.create_order.side_effect = OrderSubmissionException("Insufficient stock for G1 Prash", 400)

        with pytest.raises(OrderSubmissionException):
            await ready_controller.submit()

        assert ready_controller.submission_state == SubmissionState.FAILED
        assert ready_controller.last_error == "Insufficient stock for G1 Prash"
        assert cart.lines == lines_before
        assert ready_controller.payment_proof == proof_before
        assert ready_controller.can_submit

        order_client.create_order.side_effect = None
        confirmation = await ready_controller.submit()

        assert confirmation.orderId == 9001
        assert order_client.create_order.await_count == 2
        assert ready_controller.last_error is None
        assert cart.is_empty

    @pytest.mark.asyncio
    async def test_unexpected_error_is_reported_as_submission_failure(self, ready_controller, cart, order_client):
        order_client.create_order.side_effect = RuntimeError("boom")

        with pytest.raises(OrderSubmissionException):
            await ready_controller.submit()

        assert ready_controller.submission_state == SubmissionState.FAILED
        assert not cart.is_empty

    @pytest.mark.asyncio
    async def test_submit_without_proof_is_rejected(self, controller, delivery_form, order_client):
        controller.submit_details(delivery_form)

        with pytest.raises(InvalidCheckoutStateException):
            await controller.submit()

        order_client.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_submit_after_success_is_rejected(self, ready_controller, order_client):
        await ready_controller.submit()

        with pytest.raises(InvalidCheckoutStateException):
            await ready_controller.submit()

        order_client.create_order.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_submit_with_cart_emptied_meanwhile(self, ready_controller, cart, order_client):
        await cart.clear_cart()

        with pytest.raises(EmptyCartException):
            await ready_controller.submit()

        order_client.create_order.assert_not_awaited()


class TestNavigation:

    @pytest.mark.asyncio
    async def test_back_discards_proof_and_keeps_details(self, ready_controller):
        details = ready_controller.delivery_data

        ready_controller.back_to_details()

        assert ready_controller.step == CheckoutStep.DETAILS
        assert ready_controller.payment_proof is None
        assert ready_controller.delivery_data == details

    @pytest.mark.asyncio
    async def test_back_after_failure_resets_submission(self, ready_controller, order_client):
        order_client.create_order.side_effect = OrderSubmissionException("Network error. Please check your connection.")
        with pytest.raises(OrderSubmissionException):
            await ready_controller.submit()

        ready_controller.back_to_details()

        assert ready_controller.submission_state == SubmissionState.IDLE
        assert ready_controller.last_error is None

    @pytest.mark.asyncio
    async def test_back_is_blocked_after_success(self, ready_controller):
        await ready_controller.submit()

        with pytest.raises(InvalidCheckoutStateException):
            ready_controller.back_to_details()

    @pytest.mark.asyncio
    async def test_closed_session_rejects_operations_and_keeps_cart(self, ready_controller, cart, order_client):
        ready_controller.close()

        assert ready_controller.is_closed
        with pytest.raises(InvalidCheckoutStateException):
            await ready_controller.submit()
        with pytest.raises(InvalidCheckoutStateException):
            ready_controller.remove_payment_proof()
        assert not cart.is_empty
        order_client.create_order.assert_not_awaited()
