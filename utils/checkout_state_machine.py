"""
Checkout State Machine for validating checkout transitions.

This module implements the two finite state machines that drive a checkout
session (the step the user is on, and the state of the order submission)
and provides audit logging for every transition.
"""

import logging
from typing import Dict, List, Set

from enums.checkout_step import CheckoutStep
from enums.submission_state import SubmissionState

logger = logging.getLogger(__name__)


class CheckoutTransition:
    """Represents a valid transition with metadata"""

    def __init__(self, from_state: str, to_state: str, description: str = ""):
        self.from_state = from_state
        self.to_state = to_state
        self.description = description

    def __repr__(self):
        return f"{self.from_state} -> {self.to_state}"


class CheckoutStateMachine:
    """
    Finite state machines for checkout step and submission transitions.

    Valid step transitions:
    - DETAILS -> PAYMENT (delivery details validated)
    - PAYMENT -> DETAILS (back navigation, payment proof discarded)

    Valid submission transitions:
    - IDLE -> SUBMITTING (order request sent)
    - FAILED -> SUBMITTING (retry)
    - SUBMITTING -> SUCCEEDED (order created)
    - SUBMITTING -> FAILED (order request rejected)
    - FAILED -> IDLE (back navigation after a failure)

    Invalid transitions (will be rejected):
    - SUCCEEDED -> any state (final state)
    - SUBMITTING -> SUBMITTING (duplicate submission)
    """

    STEP_TRANSITIONS: List[CheckoutTransition] = [
        CheckoutTransition(
            CheckoutStep.DETAILS.value,
            CheckoutStep.PAYMENT.value,
            description="Delivery details accepted"
        ),
        CheckoutTransition(
            CheckoutStep.PAYMENT.value,
            CheckoutStep.DETAILS.value,
            description="Back to delivery details, payment proof discarded"
        ),
    ]

    SUBMISSION_TRANSITIONS: List[CheckoutTransition] = [
        CheckoutTransition(
            SubmissionState.IDLE.value,
            SubmissionState.SUBMITTING.value,
            description="Order request sent"
        ),
        CheckoutTransition(
            SubmissionState.FAILED.value,
            SubmissionState.SUBMITTING.value,
            description="Order request retried"
        ),
        CheckoutTransition(
            SubmissionState.SUBMITTING.value,
            SubmissionState.SUCCEEDED.value,
            description="Order created"
        ),
        CheckoutTransition(
            SubmissionState.SUBMITTING.value,
            SubmissionState.FAILED.value,
            description="Order request rejected"
        ),
        CheckoutTransition(
            SubmissionState.FAILED.value,
            SubmissionState.IDLE.value,
            description="Failure dismissed by back navigation"
        ),
    ]

    FINAL_SUBMISSION_STATES: Set[str] = {SubmissionState.SUCCEEDED.value}

    _step_map: Dict[str, Set[str]] = {}
    _submission_map: Dict[str, Set[str]] = {}
    _descriptions: Dict[tuple, str] = {}

    @classmethod
    def _build_transition_maps(cls):
        """Build internal transition maps for fast lookup"""
        if cls._step_map:
            return  # Already built

        for transitions, target in ((cls.STEP_TRANSITIONS, cls._step_map),
                                    (cls.SUBMISSION_TRANSITIONS, cls._submission_map)):
            for transition in transitions:
                target.setdefault(transition.from_state, set()).add(transition.to_state)
                cls._descriptions[(transition.from_state, transition.to_state)] = transition.description

    @classmethod
    def is_valid_step_transition(cls, from_step: CheckoutStep, to_step: CheckoutStep) -> bool:
        cls._build_transition_maps()
        return to_step.value in cls._step_map.get(from_step.value, set())

    @classmethod
    def is_valid_submission_transition(cls, from_state: SubmissionState, to_state: SubmissionState) -> bool:
        cls._build_transition_maps()
        return to_state.value in cls._submission_map.get(from_state.value, set())

    @classmethod
    def get_valid_submission_transitions(cls, from_state: SubmissionState) -> List[str]:
        cls._build_transition_maps()
        return sorted(cls._submission_map.get(from_state.value, set()))

    @classmethod
    def is_final_submission_state(cls, state: SubmissionState) -> bool:
        return state.value in cls.FINAL_SUBMISSION_STATES

    @classmethod
    def validate_and_log_transition(cls, owner_id: int, from_state: CheckoutStep | SubmissionState,
                                    to_state: CheckoutStep | SubmissionState) -> bool:
        """
        Validate a step or submission transition and create an audit log entry.

        Args:
            owner_id: Telegram user ID owning the checkout session
            from_state: Current step or submission state
            to_state: Desired step or submission state

        Returns:
            True if transition is valid and logged, False otherwise
        """
        if isinstance(from_state, CheckoutStep) and isinstance(to_state, CheckoutStep):
            is_valid = cls.is_valid_step_transition(from_state, to_state)
        elif isinstance(from_state, SubmissionState) and isinstance(to_state, SubmissionState):
            is_valid = cls.is_valid_submission_transition(from_state, to_state)
        else:
            is_valid = False

        if not is_valid:
            logger.error(f"Invalid checkout transition for user {owner_id}: {from_state.value} -> {to_state.value}")
            return False

        description = cls._descriptions.get((from_state.value, to_state.value), "")
        logger.info(f"CHECKOUT_TRANSITION: User {owner_id} {from_state.value} -> {to_state.value}: {description}")
        return True
