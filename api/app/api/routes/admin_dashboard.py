"""Admin dashboard summary."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_current_user
from app.db.session import get_db
from app.models.models import Customer, Order, Product, User
from app.schemas.store import DashboardStats

router = APIRouter()


@router.get("", response_model=DashboardStats)
def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return DashboardStats(
        product_count=db.query(Product).count(),
        order_count=db.query(Order).count(),
        customer_count=db.query(Customer).count(),
    )
