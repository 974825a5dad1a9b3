from __future__ import annotations

from sqlalchemy import Index
from sqlalchemy.sql import func

from suanha.extensions import db


class PriceCategory(db.Model):
    __tablename__ = "price_categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    items = db.relationship(
        "PriceItem",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="PriceItem.item_name",
    )
    creator = db.relationship("User")

    __table_args__ = (
        Index("ix_price_categories_lower_name", func.lower(name)),
    )

    def __repr__(self) -> str:
        return f"<PriceCategory id={self.id} name={self.name!r}>"

    def to_dict(self, *, active_items_only: bool = False) -> dict:
        items = [i for i in self.items if i.is_active] if active_items_only else list(self.items)
        return dict(
            id=self.id,
            name=self.name,
            is_active=self.is_active,
            creator=self.creator.to_brief() if self.creator else None,
            items=[i.to_dict(include_category=False) for i in items],
            created_at=self.created_at.isoformat() if self.created_at else None,
            updated_at=self.updated_at.isoformat() if self.updated_at else None,
        )
