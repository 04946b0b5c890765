import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    JSON,
    Column,
    String,
    Text,
    Integer,
    Numeric,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.db.base import Base


def uuid_default():
    return uuid.uuid4()


def utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "admin_users"

    id = Column(Uuid, primary_key=True, default=uuid_default)
    username = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_login = Column(DateTime(timezone=True), nullable=True)
    disabled_at = Column(DateTime(timezone=True), nullable=True)

    sessions = relationship("Session", back_populates="user", cascade="all, delete-orphan")


class Session(Base):
    __tablename__ = "sessions"

    id = Column(Uuid, primary_key=True, default=uuid_default)
    user_id = Column(Uuid, ForeignKey("admin_users.id", ondelete="CASCADE"), nullable=False, index=True)
    csrf_token = Column(String(64), nullable=False)
    ip_address = Column(String(45), nullable=True)
    last_activity = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    user = relationship("User", back_populates="sessions")
    plugins = relationship("ImportedPlugin", back_populates="session", cascade="all, delete-orphan")


class ImportedPlugin(Base):
    __tablename__ = "imported_plugins"

    id = Column(Uuid, primary_key=True, default=uuid_default)
    session_id = Column(Uuid, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    slug = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    version = Column(String(64), nullable=True)
    description = Column(Text, nullable=True)
    author = Column(String(255), nullable=True)
    main_file = Column(Text, nullable=False)
    path = Column(Text, nullable=False)
    menus = Column(JSON, nullable=False, default=list)
    schemas = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    session = relationship("Session", back_populates="plugins")

    __table_args__ = (
        UniqueConstraint("session_id", "slug", name="uq_session_plugin_slug"),
    )


class Product(Base):
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid_default)
    name = Column(String(255), nullable=False)
    sku = Column(String(64), unique=True, nullable=True)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    stock = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Uuid, primary_key=True, default=uuid_default)
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    orders = relationship("Order", back_populates="customer")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid_default)
    customer_id = Column(Uuid, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    status = Column(String(32), nullable=False, default="pending")
    total = Column(Numeric(10, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    customer = relationship("Customer", back_populates="orders")


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id = Column(Uuid, primary_key=True, default=uuid_default)
    user_id = Column(Uuid, ForeignKey("admin_users.id", ondelete="SET NULL"), nullable=True, index=True)
    action_type = Column(String(64), nullable=False)
    record_type = Column(String(64), nullable=True)
    record_id = Column(String(255), nullable=True)
    after_json = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)
