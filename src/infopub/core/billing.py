"""Plan and subscription state read from the billing collaborator"""

import logging
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel, Field

from infopub.core.errors import BillingError


logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_PATH = "/dashboard?billing=success"
DEFAULT_CANCEL_PATH = "/dashboard?billing=cancel"


class Plan(str, Enum):
    free = "free"
    pro = "pro"


class SubscriptionStatus(str, Enum):
    trialing = "trialing"
    active = "active"
    past_due = "past_due"
    canceled = "canceled"


class Subscription(BaseModel):
    """Billing state of a tenant. The core reads it; the provider's webhook writes it."""
    plan: Plan = Plan.free
    status: SubscriptionStatus = SubscriptionStatus.active
    max_published_pages: int = Field(default=3, ge=0)

    @property
    def can_publish(self) -> bool:
        return self.status in (SubscriptionStatus.active, SubscriptionStatus.trialing)

    @property
    def is_pro_active(self) -> bool:
        return self.plan == Plan.pro and self.can_publish


def limit_for_plan(plan: Plan, free_limit: int = 3, pro_limit: int = 1000) -> int:
    return pro_limit if plan == Plan.pro else free_limit


class PaymentProvider(ABC):
    """Hosted checkout and billing portal; both return a redirect URL."""

    @abstractmethod
    def start_checkout(self, success_path: str, cancel_path: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def open_portal(self) -> str:
        raise NotImplementedError


def poll_plan_activation(
    fetch: Callable[[], Optional[Subscription]],
    attempts: int = 6,
    delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
    ) -> Optional[Subscription]:
    """Re-read the subscription until the pro plan is active or attempts run out.

    Returns the last subscription read; callers check ``is_pro_active`` to tell
    success from a still-pending webhook.
    """
    latest = None
    for attempt in range(attempts):
        latest = fetch()
        if latest is not None and latest.is_pro_active:
            logger.info("Pro plan active after %d attempt(s)", attempt + 1)
            return latest
        if attempt < attempts - 1:
            sleep(delay)
    logger.info("Pro plan not yet active after %d attempt(s)", attempts)
    return latest


def internal_path(value: Optional[str], fallback: str) -> str:
    """Accept only same-origin absolute paths ("/x", not "//host" or a full URL)."""
    if not isinstance(value, str):
        return fallback
    value = value.strip()
    if not value.startswith("/") or value.startswith("//"):
        return fallback
    return value


def checkout_url(
    provider: PaymentProvider,
    success_path: Optional[str] = None,
    cancel_path: Optional[str] = None,
    ) -> str:
    """Start a hosted checkout for the pro plan and return the redirect URL."""
    success = internal_path(success_path, DEFAULT_SUCCESS_PATH)
    cancel = internal_path(cancel_path, DEFAULT_CANCEL_PATH)
    try:
        url = provider.start_checkout(success, cancel)
    except BillingError:
        raise
    except Exception as e:
        raise BillingError(f"Could not start checkout: {e}") from e
    if not url:
        raise BillingError("Checkout URL was not returned.")
    return url


def portal_url(provider: PaymentProvider) -> str:
    """Open the billing portal and return the redirect URL."""
    try:
        url = provider.open_portal()
    except BillingError:
        raise
    except Exception as e:
        raise BillingError(f"Could not open the billing portal: {e}") from e
    if not url:
        raise BillingError("Billing portal URL was not returned.")
    return url
