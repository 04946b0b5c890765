from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, require_csrf
from app.db.session import get_db
from app.models.models import Product, Session as SessionModel, User
from app.schemas.store import ProductCreate, ProductRead, ProductUpdate
from app.services.audit import log_audit

router = APIRouter()


def _get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


def _get_product(db: Session, product_id: UUID) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _ensure_unique_sku(db: Session, sku: str | None, exclude_id: UUID | None = None) -> None:
    if not sku:
        return
    q = db.query(Product).filter(Product.sku == sku)
    if exclude_id:
        q = q.filter(Product.id != exclude_id)
    if q.first():
        raise HTTPException(status_code=400, detail="SKU already exists")


@router.get("", response_model=list[ProductRead])
def list_products(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return db.query(Product).order_by(Product.created_at.desc()).all()


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(
    body: ProductCreate,
    request: Request,
    db: Session = Depends(get_db),
    sess: SessionModel = Depends(require_csrf),
):
    _ensure_unique_sku(db, body.sku)
    product = Product(**body.model_dump())
    db.add(product)
    db.flush()
    log_audit(
        db,
        user_id=sess.user_id,
        action_type="create_product",
        record_type="product",
        record_id=product.id,
        after_json={"name": product.name, "sku": product.sku},
        ip_address=_get_client_ip(request),
    )
    db.commit()
    db.refresh(product)
    return product


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_product(db, product_id)


@router.patch("/{product_id}", response_model=ProductRead)
def update_product(
    product_id: UUID,
    body: ProductUpdate,
    request: Request,
    db: Session = Depends(get_db),
    sess: SessionModel = Depends(require_csrf),
):
    product = _get_product(db, product_id)
    data = body.model_dump(exclude_unset=True)
    if "sku" in data:
        _ensure_unique_sku(db, data["sku"], exclude_id=product_id)
    for k, v in data.items():
        setattr(product, k, v)
    log_audit(
        db,
        user_id=sess.user_id,
        action_type="update_product",
        record_type="product",
        record_id=product.id,
        after_json={k: str(v) if v is not None else None for k, v in data.items()},
        ip_address=_get_client_ip(request),
    )
    db.commit()
    db.refresh(product)
    return product


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    sess: SessionModel = Depends(require_csrf),
):
    product = _get_product(db, product_id)
    log_audit(
        db,
        user_id=sess.user_id,
        action_type="delete_product",
        record_type="product",
        record_id=product.id,
        after_json={"name": product.name},
        ip_address=_get_client_ip(request),
    )
    db.delete(product)
    db.commit()
