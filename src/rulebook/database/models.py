"""SQLAlchemy models for rulebook database."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Category(Base):
    """Category model with hierarchical structure."""

    __tablename__ = "categories"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    parent_id = Column(String, ForeignKey("categories.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    parent = relationship("Category", remote_side=[id], backref="children")


class Counterparty(Base):
    """Counterparty (payee or payer) model."""

    __tablename__ = "counterparties"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    parent_id = Column(String, ForeignKey("counterparties.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    parent = relationship("Counterparty", remote_side=[id], backref="children")


class Location(Base):
    """Location model."""

    __tablename__ = "locations"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    parent_id = Column(String, ForeignKey("locations.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    parent = relationship("Location", remote_side=[id], backref="children")


class TransactionType(Base):
    """Transaction type model."""

    __tablename__ = "transaction_types"

    id = Column(String, primary_key=True)
    name = Column(String, unique=True, nullable=False)


class Rule(Base):
    """Reconciliation rule model."""

    __tablename__ = "rules"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    priority = Column(Integer, default=0, nullable=False)
    skip_import = Column(Boolean, default=False, nullable=False)
    set_category_id = Column(String, ForeignKey("categories.id"), nullable=True)
    set_counterparty_id = Column(String, ForeignKey("counterparties.id"), nullable=True)
    set_location_id = Column(String, ForeignKey("locations.id"), nullable=True)
    set_user_id = Column(String, nullable=True)
    set_transaction_type_id = Column(String, ForeignKey("transaction_types.id"), nullable=True)
    set_description = Column(String, nullable=True)
    assign_tag_ids = Column(JSON, default=list, nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    conditions = relationship(
        "RuleCondition",
        back_populates="rule",
        cascade="all, delete-orphan",
        order_by="RuleCondition.position",
    )


class RuleCondition(Base):
    """Rule condition model.

    ``value`` stores the alternatives joined with " || ".
    """

    __tablename__ = "rule_conditions"

    row_id = Column(Integer, primary_key=True)
    rule_id = Column(String, ForeignKey("rules.id"), nullable=False)
    position = Column(Integer, nullable=False)
    condition_id = Column(String, nullable=False)
    kind = Column(String, default="basic", nullable=False)
    field = Column(String, nullable=False)
    operator = Column(String, nullable=False)
    value = Column(String, default="", nullable=False)
    chain = Column(String, default="AND", nullable=False)

    # Relationships
    rule = relationship("Rule", back_populates="conditions")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
