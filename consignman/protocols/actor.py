"""
Actor context — who is acting on stock.

Passed explicitly to every operation; Consignman never reads an ambient
"current user".
"""

from __future__ import annotations

from dataclasses import dataclass

from consignman.exceptions import StockError
from consignman.models.enums import ActorRole


@dataclass(frozen=True)
class Actor:
    """Authenticated party, as resolved by the host application."""

    actor_id: str
    role: str

    def __post_init__(self):
        if self.role not in ActorRole.values:
            raise StockError('INVALID_ROLE', actor_id=self.actor_id, role=self.role)

    @property
    def sells_from_allocation(self) -> bool:
        """Agents sell what was allocated to them, everyone else sells from shop stock."""
        return self.role == ActorRole.AGENT

    @classmethod
    def agent(cls, actor_id: str) -> Actor:
        return cls(actor_id=actor_id, role=ActorRole.AGENT)

    @classmethod
    def seller(cls, actor_id: str) -> Actor:
        return cls(actor_id=actor_id, role=ActorRole.SELLER)

    @classmethod
    def shop_staff(cls, actor_id: str) -> Actor:
        return cls(actor_id=actor_id, role=ActorRole.SHOP_STAFF)
