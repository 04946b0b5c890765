from app.schemas.store import (
    ProductCreate,
    ProductUpdate,
    ProductRead,
    CustomerCreate,
    CustomerRead,
    OrderCreate,
    OrderUpdate,
    OrderRead,
)
from app.schemas.plugin import (
    MenuDeclarationRead,
    PluginRead,
)

__all__ = [
    "ProductCreate",
    "ProductUpdate",
    "ProductRead",
    "CustomerCreate",
    "CustomerRead",
    "OrderCreate",
    "OrderUpdate",
    "OrderRead",
    "MenuDeclarationRead",
    "PluginRead",
]
