from __future__ import annotations

from sqlalchemy import Index, CheckConstraint
from sqlalchemy.sql import func

from suanha.extensions import db
from suanha.utils.helpers import money_out, number_out


class PriceItem(db.Model):
    __tablename__ = "price_items"
    __allow_unmapped__ = True

    id = db.Column(db.Integer, primary_key=True)
    category_id = db.Column(
        db.Integer,
        db.ForeignKey("price_categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    item_name   = db.Column(db.String(255), nullable=False)
    unit        = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # unit_price is the VAT-exclusive selling price quoted on line items.
    # base_cost is kept so the price can be recomputed when markups change.
    unit_price  = db.Column(db.Numeric(14, 0), nullable=False)
    base_cost   = db.Column(db.Numeric(14, 0), nullable=True)
    labor_hours = db.Column(db.Numeric(8, 2), nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    category = db.relationship("PriceCategory", back_populates="items")

    __table_args__ = (
        Index("ix_price_items_lower_item_name", func.lower(item_name)),
        Index("ix_price_items_category_active", category_id, is_active),
        CheckConstraint("unit_price >= 0", name="ck_price_items_unit_price_nonneg"),
        CheckConstraint("base_cost IS NULL OR base_cost >= 0", name="ck_price_items_base_cost_nonneg"),
    )

    def __repr__(self) -> str:
        return f"<PriceItem id={self.id} name={self.item_name!r} unit_price={self.unit_price}>"

    def to_dict(self, *, include_category: bool = True) -> dict:
        out = dict(
            id=self.id,
            category_id=self.category_id,
            item_name=self.item_name,
            unit=self.unit,
            description=self.description,
            unit_price=money_out(self.unit_price),
            base_cost=money_out(self.base_cost),
            labor_hours=number_out(self.labor_hours),
            is_active=self.is_active,
            created_at=self.created_at.isoformat() if self.created_at else None,
            updated_at=self.updated_at.isoformat() if self.updated_at else None,
        )
        if include_category:
            out["category"] = (
                dict(id=self.category.id, name=self.category.name) if self.category else None
            )
        return out
