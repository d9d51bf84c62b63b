from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    url: Optional[str]
    payment_status: str
    metadata: Dict[str, str] = field(default_factory=dict)


class CheckoutPort(Protocol):
    async def create_checkout_session(
        self,
        *,
        customer_email: str,
        product_name: str,
        description: str,
        amount_minor: int,
        currency: str,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
    ) -> CheckoutSession: ...

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession: ...
