from __future__ import annotations

import logging
import time

from services.storefront.application.dto import (
    PaymentRequest,
    PaymentResult,
    mask_card,
)
from services.storefront.application.interfaces import IdProvider, PaymentGateway
from services.storefront.infrastructure.ids import TokenIdProvider

LOGGER = logging.getLogger(__name__)

MIN_CARD_DIGITS = 13


class SimulatedPaymentGateway(PaymentGateway):
    """Stand-in gateway: checks card details for shape and always settles."""

    def __init__(
        self,
        *,
        delay_seconds: float = 1.0,
        reference_provider: IdProvider | None = None,
    ) -> None:
        self._delay_seconds = delay_seconds
        self._references = reference_provider or TokenIdProvider(prefix="pay", length=16)

    def charge(self, request: PaymentRequest) -> PaymentResult:
        details = request.details
        LOGGER.info(
            "Processing payment for order %s amount %s %s card %s",
            request.order_number,
            request.amount,
            request.currency,
            mask_card(details.card_number),
        )
        if request.method.is_card:
            if not details.card_number or not details.cvv:
                LOGGER.error("Invalid card details for order %s", request.order_number)
                return PaymentResult(success=False, failure_reason="Invalid card details")
            digits = "".join(details.card_number.split())
            if len(digits) < MIN_CARD_DIGITS:
                LOGGER.error("Invalid card number for order %s", request.order_number)
                return PaymentResult(success=False, failure_reason="Invalid card number")

        if self._delay_seconds > 0:
            time.sleep(self._delay_seconds)
        reference = self._references.generate()
        LOGGER.info(
            "Payment processed for order %s reference %s",
            request.order_number,
            reference,
        )
        return PaymentResult(success=True, reference=reference)
