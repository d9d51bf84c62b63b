"""
Credit Pricing - fixed credit packages sold through Stripe Checkout
"""

from dataclasses import dataclass

from penpal.errors import InvalidCreditKind
from penpal.models.enums import DeliveryType


@dataclass(frozen=True)
class CreditPackage:
    credit_type: DeliveryType
    credits: int
    price_minor: int
    currency: str
    product_name: str

    @property
    def description(self) -> str:
        return f"{self.credits} {self.credit_type.value} credits for Fantasy Letters"


CREDIT_PACKAGES = {
    DeliveryType.DIGITAL: CreditPackage(
        credit_type=DeliveryType.DIGITAL,
        credits=100,
        price_minor=500,
        currency="usd",
        product_name="100 Digital Reply Credits",
    ),
    DeliveryType.PHYSICAL: CreditPackage(
        credit_type=DeliveryType.PHYSICAL,
        credits=5,
        price_minor=500,
        currency="usd",
        product_name="5 Physical Letter Credits",
    ),
}


def parse_credit_type(value) -> DeliveryType:
    """
    Raises:
        InvalidCreditKind: If value is not "digital" or "physical"
    """
    try:
        return DeliveryType(value)
    except ValueError:
        raise InvalidCreditKind() from None


def get_credit_package(credit_type) -> CreditPackage:
    """
    Look up the package for a credit type. Never trust the client for price.

    Raises:
        InvalidCreditKind: If the credit type is unknown
    """
    return CREDIT_PACKAGES[parse_credit_type(credit_type)]
