"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass

from invres.domain.exceptions import ValidationError


def require_tenant(tenant_id: str | None) -> str:
    """Return a normalized tenant id, rejecting a missing scope.

    Every stock or reservation lookup is partitioned by tenant, so an
    empty tenant is never a valid wildcard.
    """
    if not isinstance(tenant_id, str) or not tenant_id.strip():
        raise ValidationError("A tenant scope is required for stock operations")
    return tenant_id.strip().upper()


@dataclass(frozen=True, order=True)
class StockKey:
    """Composite identity of a StockRecord: (tenant, product, warehouse)."""

    tenant_id: str
    product_id: str
    warehouse_id: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "tenant_id", require_tenant(self.tenant_id))
        if not self.product_id:
            raise ValidationError("Product ID is required")
        if not self.warehouse_id:
            raise ValidationError("Warehouse ID is required")

    def __str__(self) -> str:
        return f"{self.tenant_id}/{self.product_id}@{self.warehouse_id}"


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot order zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class OrderLine:
    """One line of an order: how many units of a product from which warehouse."""

    product_id: str
    warehouse_id: str
    quantity: Quantity

    def __post_init__(self) -> None:
        if not self.product_id:
            raise ValidationError("Product ID is required")
        if not self.warehouse_id:
            raise ValidationError("Warehouse ID is required")

    @property
    def line_key(self) -> tuple[str, str]:
        return (self.product_id, self.warehouse_id)

    @staticmethod
    def of(product_id: str, warehouse_id: str, quantity: int) -> OrderLine:
        return OrderLine(product_id, warehouse_id, Quantity(quantity))
