from __future__ import annotations

from sqlalchemy import Index, CheckConstraint, text
from sqlalchemy.sql import func

from suanha.extensions import db
from suanha.utils.helpers import money_out, number_out

STATUS_DRAFT = "DRAFT"
STATUS_REVIEWED = "REVIEWED"
STATUS_SENT = "SENT"
STATUS_CONTRACTED = "CONTRACTED"
STATUS_CANCELLED = "CANCELLED"
STATUS_CHOICES = (STATUS_DRAFT, STATUS_REVIEWED, STATUS_SENT, STATUS_CONTRACTED, STATUS_CANCELLED)
PENDING_STATUSES = (STATUS_DRAFT, STATUS_REVIEWED)


class Quotation(db.Model):
    __tablename__ = "quotations"
    __allow_unmapped__ = True

    id = db.Column(db.Integer, primary_key=True)
    quotation_number = db.Column(db.String(32), nullable=False, unique=True)

    # Relations
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="RESTRICT"), nullable=False, index=True)
    customer_address_id = db.Column(
        db.Integer, db.ForeignKey("customer_addresses.id", ondelete="SET NULL"), nullable=True
    )
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Basics
    title       = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    notes       = db.Column(db.Text, nullable=True)
    status      = db.Column(db.String(16), nullable=False, server_default=text("'DRAFT'"))
    valid_until = db.Column(db.DateTime(timezone=True), nullable=True)

    # Cost inputs (whole đồng) and rates (%)
    material_cost = db.Column(db.Numeric(14, 0), nullable=False, default=0)
    labor_cost    = db.Column(db.Numeric(14, 0), nullable=False, default=0)
    travel_cost   = db.Column(db.Numeric(14, 0), nullable=False, default=0)
    margin_rate   = db.Column(db.Numeric(5, 2), nullable=False, default=15)
    tax_rate      = db.Column(db.Numeric(5, 2), nullable=False, default=10)

    # Stored results of compute_quotation_totals(); subtotal is after margin
    subtotal = db.Column(db.Numeric(16, 0), nullable=False, default=0)
    tax      = db.Column(db.Numeric(16, 0), nullable=False, default=0)
    total    = db.Column(db.Numeric(16, 0), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    customer = db.relationship("Customer", back_populates="quotations")
    customer_address = db.relationship("CustomerAddress")
    creator = db.relationship("User")
    items = db.relationship(
        "QuotationItem",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationItem.id",
    )

    __table_args__ = (
        Index("ix_quotations_status", status),
        Index("ix_quotations_created_at", created_at),
        CheckConstraint(
            "status IN ('DRAFT','REVIEWED','SENT','CONTRACTED','CANCELLED')",
            name="ck_quotations_status_valid",
        ),
    )

    def __repr__(self) -> str:
        return f"<Quotation id={self.id} number={self.quotation_number!r} status={self.status!r}>"

    def to_summary(self) -> dict:
        return dict(
            id=self.id,
            quotation_number=self.quotation_number,
            title=self.title,
            status=self.status,
            total=money_out(self.total),
            created_at=self.created_at.isoformat() if self.created_at else None,
        )

    def to_dict(self, *, include_items: bool = True) -> dict:
        out = dict(
            id=self.id,
            quotation_number=self.quotation_number,
            customer_id=self.customer_id,
            customer=self.customer.to_brief() if self.customer else None,
            customer_address_id=self.customer_address_id,
            customer_address=self.customer_address.to_dict() if self.customer_address else None,
            title=self.title,
            description=self.description,
            notes=self.notes,
            status=self.status,
            material_cost=money_out(self.material_cost),
            labor_cost=money_out(self.labor_cost),
            travel_cost=money_out(self.travel_cost),
            margin_rate=number_out(self.margin_rate),
            tax_rate=number_out(self.tax_rate),
            subtotal=money_out(self.subtotal),
            tax=money_out(self.tax),
            total=money_out(self.total),
            valid_until=self.valid_until.isoformat() if self.valid_until else None,
            creator=self.creator.to_brief() if self.creator else None,
            created_at=self.created_at.isoformat() if self.created_at else None,
            updated_at=self.updated_at.isoformat() if self.updated_at else None,
        )
        if include_items:
            out["items"] = [i.to_dict() for i in self.items]
        return out


class QuotationItem(db.Model):
    __tablename__ = "quotation_items"

    id = db.Column(db.Integer, primary_key=True)
    quotation_id = db.Column(
        db.Integer, db.ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category_id = db.Column(
        db.Integer, db.ForeignKey("price_categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    price_item_id = db.Column(
        db.Integer, db.ForeignKey("price_items.id", ondelete="SET NULL"), nullable=True, index=True
    )

    item_name  = db.Column(db.String(255), nullable=False)
    quantity   = db.Column(db.Numeric(12, 3), nullable=False)
    unit_price = db.Column(db.Numeric(14, 0), nullable=False)
    amount     = db.Column(db.Numeric(16, 0), nullable=False)

    quotation = db.relationship("Quotation", back_populates="items")
    category = db.relationship("PriceCategory")

    def to_dict(self) -> dict:
        return dict(
            id=self.id,
            category_id=self.category_id,
            category=dict(id=self.category.id, name=self.category.name) if self.category else None,
            price_item_id=self.price_item_id,
            item_name=self.item_name,
            quantity=number_out(self.quantity),
            unit_price=money_out(self.unit_price),
            amount=money_out(self.amount),
        )
