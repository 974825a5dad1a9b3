from __future__ import annotations

from sqlalchemy import Index
from sqlalchemy.sql import func

from suanha.extensions import db


class Customer(db.Model):
    __tablename__ = "customers"
    __allow_unmapped__ = True

    id = db.Column(db.Integer, primary_key=True)

    customer_name = db.Column(db.String(255), nullable=False)
    company_name  = db.Column(db.String(255), nullable=True)
    phone         = db.Column(db.String(32), nullable=False)
    email         = db.Column(db.String(255), nullable=True)
    memo          = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    addresses = db.relationship(
        "CustomerAddress",
        back_populates="customer",
        cascade="all, delete-orphan",
        order_by="CustomerAddress.id",
    )
    quotations = db.relationship("Quotation", back_populates="customer", lazy="dynamic")

    __table_args__ = (
        Index("ix_customers_lower_customer_name", func.lower(customer_name)),
        Index("ix_customers_lower_company_name", func.lower(company_name)),
        Index("ix_customers_phone", phone),
        Index("ix_customers_created_at", created_at),
    )

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.customer_name!r}>"

    @property
    def main_address(self):
        for a in self.addresses:
            if a.is_main:
                return a
        return self.addresses[0] if self.addresses else None

    def to_brief(self) -> dict:
        return dict(
            id=self.id,
            customer_name=self.customer_name,
            company_name=self.company_name,
            phone=self.phone,
        )

    def to_dict(self, *, quotations=None) -> dict:
        out = dict(
            id=self.id,
            customer_name=self.customer_name,
            company_name=self.company_name,
            phone=self.phone,
            email=self.email,
            memo=self.memo,
            addresses=[a.to_dict() for a in self.addresses],
            created_at=self.created_at.isoformat() if self.created_at else None,
            updated_at=self.updated_at.isoformat() if self.updated_at else None,
        )
        if quotations is not None:
            out["quotations"] = [q.to_summary() for q in quotations]
        return out


class CustomerAddress(db.Model):
    __tablename__ = "customer_addresses"

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(
        db.Integer,
        db.ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name    = db.Column(db.String(100), nullable=False)   # "Home", "Office", ...
    address = db.Column(db.String(500), nullable=False)
    is_main = db.Column(db.Boolean, nullable=False, default=False)

    customer = db.relationship("Customer", back_populates="addresses")

    def to_dict(self) -> dict:
        return dict(id=self.id, name=self.name, address=self.address, is_main=self.is_main)
