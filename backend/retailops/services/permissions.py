import enum
from typing import Dict, FrozenSet, Union

from retailops.services.errors import InvalidInput, PermissionDenied


class Role(str, enum.Enum):
    ADMIN = "admin"
    CASHIER = "cashier"


CATALOG_READ = "catalog.read"
CATALOG_WRITE = "catalog.write"
BARCODE_LOOKUP = "barcode.lookup"
INVENTORY_READ = "inventory.read"
INVENTORY_WRITE = "inventory.write"
CHECKOUT = "checkout"
ORDERS_READ = "orders.read"

ALL_CAPABILITIES = frozenset(
    {
        CATALOG_READ,
        CATALOG_WRITE,
        BARCODE_LOOKUP,
        INVENTORY_READ,
        INVENTORY_WRITE,
        CHECKOUT,
        ORDERS_READ,
    }
)

ROLE_CAPABILITIES: Dict[Role, FrozenSet[str]] = {
    Role.ADMIN: ALL_CAPABILITIES,
    Role.CASHIER: frozenset(
        {CATALOG_READ, BARCODE_LOOKUP, INVENTORY_READ, CHECKOUT, ORDERS_READ}
    ),
}


def parse_role(value: Union[str, Role, None]) -> Role:
    if isinstance(value, Role):
        return value
    try:
        return Role((value or "").strip().lower())
    except ValueError:
        raise InvalidInput(f"Unknown role: {value}", details={"role": value})


def require(role: Role, capability: str) -> None:
    if capability not in ROLE_CAPABILITIES.get(role, frozenset()):
        raise PermissionDenied(
            f"Role '{role.value}' is not allowed to perform {capability}",
            details={"role": role.value, "capability": capability},
        )
