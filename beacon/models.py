import uuid

from sqlalchemy import (
    Column, String, DateTime,
    Boolean, Integer, ForeignKey, Uuid
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class Plan(Base):
    __tablename__ = "plans"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    name = Column(String, unique=True, nullable=False)
    price = Column(Integer, default=0, nullable=False)  # minor currency units

    max_endpoints = Column(Integer, nullable=False)
    check_interval = Column(Integer, nullable=False)  # minutes
    retention_hrs = Column(Integer, nullable=False)  # 0 = unbounded

    subscriptions = relationship("Subscription", back_populates="plan")


class User(Base):
    """Tenant owning endpoints. Created and managed outside this service."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)

    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    subscription = relationship(
        "Subscription",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan"
    )
    endpoints = relationship(
        "Endpoint",
        back_populates="owner",
        cascade="all, delete-orphan"
    )

    @property
    def plan(self):
        return self.subscription.plan if self.subscription else None


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    user_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False
    )
    plan_id = Column(Uuid, ForeignKey("plans.id"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="subscription")
    plan = relationship("Plan", back_populates="subscriptions")


class Endpoint(Base):
    __tablename__ = "endpoints"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)

    owner_id = Column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String, nullable=False)
    url = Column(String, nullable=False)
    method = Column(String(8), default="GET", nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    # Only the check path writes this, and never backwards.
    last_checked_at = Column(DateTime(timezone=True), nullable=True)

    owner = relationship("User", back_populates="endpoints")
    checks = relationship(
        "CheckResult",
        back_populates="endpoint",
        cascade="all, delete-orphan",
        passive_deletes=True
    )


class CheckResult(Base):
    __tablename__ = "check_results"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    endpoint_id = Column(
        Uuid,
        ForeignKey("endpoints.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    checked_at = Column(DateTime(timezone=True), nullable=False, index=True)

    status_code = Column(Integer, nullable=False)  # 0 = no response
    response_ms = Column(Integer, nullable=False)

    is_up = Column(Boolean, nullable=False)

    error_message = Column(String, nullable=True)

    endpoint = relationship("Endpoint", back_populates="checks")
