from fastapi import APIRouter

from app.api.routes import (
    auth,
    admin_dashboard,
    products,
    customers,
    orders,
    admin_plugins,
)

APP_VERSION = "1.0.0"

router = APIRouter(prefix="/api")


@router.get("/version")
def version():
    return {"name": "StoreAdmin", "version": APP_VERSION}


router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(admin_dashboard.router, prefix="/admin/dashboard", tags=["admin-dashboard"])
router.include_router(products.router, prefix="/admin/products", tags=["admin-products"])
router.include_router(customers.router, prefix="/admin/customers", tags=["admin-customers"])
router.include_router(orders.router, prefix="/admin/orders", tags=["admin-orders"])
router.include_router(admin_plugins.router, prefix="/admin/plugins", tags=["admin-plugins"])
