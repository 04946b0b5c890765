from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, require_csrf
from app.db.session import get_db
from app.models.models import Customer, Order, Session as SessionModel, User
from app.schemas.store import OrderCreate, OrderRead, OrderUpdate
from app.services.audit import log_audit

router = APIRouter()


def _get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.get("", response_model=list[OrderRead])
def list_orders(
    customer_id: UUID | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(Order)
    if customer_id:
        q = q.filter(Order.customer_id == customer_id)
    return q.order_by(Order.created_at.desc()).all()


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(
    body: OrderCreate,
    db: Session = Depends(get_db),
    sess: SessionModel = Depends(require_csrf),
):
    if body.customer_id and not db.query(Customer).filter(Customer.id == body.customer_id).first():
        raise HTTPException(status_code=404, detail="Customer not found")
    order = Order(**body.model_dump())
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


@router.get("/{order_id}", response_model=OrderRead)
def get_order(
    order_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.patch("/{order_id}", response_model=OrderRead)
def update_order(
    order_id: UUID,
    body: OrderUpdate,
    request: Request,
    db: Session = Depends(get_db),
    sess: SessionModel = Depends(require_csrf),
):
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    data = body.model_dump(exclude_unset=True)
    before_status = order.status
    for k, v in data.items():
        if v is not None:
            setattr(order, k, v)
    log_audit(
        db,
        user_id=sess.user_id,
        action_type="update_order",
        record_type="order",
        record_id=order.id,
        after_json={"status_before": before_status, "status": order.status},
        ip_address=_get_client_ip(request),
    )
    db.commit()
    db.refresh(order)
    return order
