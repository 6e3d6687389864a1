from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from services.storefront.domain.order import (
    Address,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from services.storefront.domain.profile import PrivacyLevel


@dataclass(frozen=True)
class AddCartItemCommand:
    user_id: int
    product_id: int
    quantity: int = 1


@dataclass(frozen=True)
class UpdateCartItemCommand:
    user_id: int
    product_id: int
    quantity: int


@dataclass(frozen=True)
class PaymentDetails:
    """Payment instrument data forwarded to the gateway. Never persisted."""

    card_number: Optional[str] = None
    expiry_month: Optional[str] = None
    expiry_year: Optional[str] = None
    cvv: Optional[str] = None
    card_holder_name: Optional[str] = None
    wallet_id: Optional[str] = None
    wallet_provider: Optional[str] = None
    bank_account_number: Optional[str] = None
    routing_number: Optional[str] = None
    bank_name: Optional[str] = None
    payment_token: Optional[str] = None

    def __repr__(self) -> str:
        return f"PaymentDetails(card={mask_card(self.card_number)})"


def mask_card(card_number: Optional[str]) -> str:
    if not card_number:
        return "-"
    digits = "".join(ch for ch in card_number if ch.isdigit())
    return f"****{digits[-4:]}" if len(digits) >= 4 else "****"


@dataclass(frozen=True)
class CheckoutCommand:
    user_id: int
    payment_method: PaymentMethod
    shipping_address: Address
    billing_address: Optional[Address] = None
    customer_notes: Optional[str] = None
    payment_details: Optional[PaymentDetails] = None


@dataclass(frozen=True)
class PaymentRequest:
    order_number: str
    amount: Decimal
    currency: str
    method: PaymentMethod
    details: PaymentDetails


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    reference: Optional[str] = None
    failure_reason: Optional[str] = None


@dataclass(frozen=True)
class CancelOrderCommand:
    order_id: int
    user_id: int
    reason: str


@dataclass(frozen=True)
class UpdateOrderStatusCommand:
    order_id: int
    status: OrderStatus
    tracking_number: Optional[str] = None


@dataclass(frozen=True)
class UpdatePaymentStatusCommand:
    order_id: int
    payment_status: PaymentStatus


@dataclass(frozen=True)
class OrderUpdate:
    """Change set applied to one order row under a lock.

    ``expected_status`` guards against concurrent writers; the update is
    rejected if the stored status differs.
    """

    expected_status: OrderStatus
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    payment_reference: Optional[str] = None
    customer_notes: Optional[str] = None
    tracking_number: Optional[str] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    release_inventory: bool = False


@dataclass(frozen=True)
class OrderPage:
    orders: List[Order]
    total: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total + self.size - 1) // self.size


@dataclass(frozen=True)
class ProfileSetupCommand:
    user_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    phone_number: Optional[str] = None
    height_cm: Optional[float] = None
    current_weight_kg: Optional[float] = None
    target_weight_kg: Optional[float] = None
    fitness_level: Optional[str] = None
    primary_goal: Optional[str] = None
    secondary_goals: List[str] = field(default_factory=list)
    preferred_activity_types: List[str] = field(default_factory=list)
    workout_frequency: Optional[int] = None
    workout_duration: Optional[int] = None
    preferred_workout_days: List[str] = field(default_factory=list)
    preferred_workout_times: List[str] = field(default_factory=list)
    dietary_restrictions: Optional[List[str]] = None
    health_conditions: Optional[List[str]] = None
    medications: List[str] = field(default_factory=list)
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None
    timezone: Optional[str] = None
    language: Optional[str] = None
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
    privacy_level: Optional[PrivacyLevel] = None


@dataclass(frozen=True)
class BasicProfileInfoCommand:
    user_id: int
    first_name: Optional[str]
    last_name: Optional[str]
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    phone_number: Optional[str] = None


@dataclass(frozen=True)
class UploadPictureCommand:
    user_id: int
    filename: str
    content_type: Optional[str]
    data: bytes


@dataclass(frozen=True)
class UploadedPicture:
    profile_picture_url: str
    file_name: str
    file_size: int
    content_type: str
    uploaded_at: datetime


@dataclass(frozen=True)
class ProfileSummary:
    user_id: int
    profile_completed: bool
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    profile_picture_url: Optional[str] = None
    fitness_level: Optional[str] = None
    primary_goal: Optional[str] = None

