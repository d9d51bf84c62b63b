"""
Entitlement Evaluator - decides whether a creature reply may be generated and
what it costs.

Pure functions over a ledger snapshot; the caller applies the resulting
mutation through ``ledger_service``.
"""
from dataclasses import dataclass
from datetime import date
from typing import Optional

import core.config as config
from penpal.errors import InsufficientCredits
from penpal.models.enums import DeliveryType


@dataclass(frozen=True)
class LedgerSnapshot:
    account_id: int
    digital_credits: int
    physical_credits: int
    daily_free_replies_used: int
    daily_reset_date: Optional[date]

    def free_replies_used_on(self, today: date) -> int:
        """Free replies already used today; the counter rolls over with the date."""
        if self.daily_reset_date != today:
            return 0
        return self.daily_free_replies_used or 0

    def free_replies_remaining(self, today: date, allowance: Optional[int] = None) -> int:
        if allowance is None:
            allowance = config.DAILY_FREE_DIGITAL_REPLIES
        return max(allowance - self.free_replies_used_on(today), 0)

    def credits_for(self, credit_type: DeliveryType) -> int:
        if credit_type == DeliveryType.PHYSICAL:
            return self.physical_credits or 0
        return self.digital_credits or 0


@dataclass(frozen=True)
class Entitlement:
    allowed: bool
    uses_free_allowance: bool
    cost: int
    credit_type: DeliveryType


def evaluate_entitlement(
    snapshot: LedgerSnapshot,
    delivery_type: DeliveryType,
    *,
    today: date,
    daily_allowance: Optional[int] = None,
) -> Entitlement:
    if daily_allowance is None:
        daily_allowance = config.DAILY_FREE_DIGITAL_REPLIES

    if delivery_type == DeliveryType.DIGITAL:
        if snapshot.free_replies_used_on(today) < daily_allowance:
            return Entitlement(True, True, 0, DeliveryType.DIGITAL)
        if snapshot.digital_credits > 0:
            return Entitlement(True, False, 1, DeliveryType.DIGITAL)
        return Entitlement(False, False, 0, DeliveryType.DIGITAL)

    # Physical mail has no free tier
    if snapshot.physical_credits > 0:
        return Entitlement(True, False, 1, DeliveryType.PHYSICAL)
    return Entitlement(False, False, 0, DeliveryType.PHYSICAL)


def require_entitlement(
    snapshot: LedgerSnapshot,
    delivery_type: DeliveryType,
    *,
    today: date,
    daily_allowance: Optional[int] = None,
) -> Entitlement:
    entitlement = evaluate_entitlement(
        snapshot, delivery_type, today=today, daily_allowance=daily_allowance
    )
    if not entitlement.allowed:
        raise InsufficientCredits(
            f"Insufficient credits for {delivery_type.value} reply"
        )
    return entitlement
