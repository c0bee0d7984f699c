from __future__ import annotations

from ..extensions import db
from shopdesk.time_utils import to_utc_z


class Shop(db.Model):
    """
    Multi-tenant root: every tenant is a Shop.

    All users (except SUPER_ADMIN), customers, products, invoices and
    reminders belong to exactly one shop. No data may cross shop boundaries.

    Shops are created by the platform-admin registration flow together with
    their first ADMIN user. Deactivation is a soft flag (is_active), never a
    row delete.
    """
    __tablename__ = "shops"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Branding
    sub_name = db.Column(db.String(255), nullable=True)
    tagline = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    logo = db.Column(db.Text, nullable=True)

    # Contact
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)
    website = db.Column(db.String(255), nullable=True)

    business_reg_no = db.Column(db.String(64), nullable=True)
    tax_id = db.Column(db.String(64), nullable=True)
    currency = db.Column(db.String(8), nullable=False, default="LKR")
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=1500)  # Basis points (1500 = 15%)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Shop id={self.id} slug={self.slug!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "sub_name": self.sub_name,
            "tagline": self.tagline,
            "description": self.description,
            "logo": self.logo,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "website": self.website,
            "business_reg_no": self.business_reg_no,
            "tax_id": self.tax_id,
            "currency": self.currency,
            "tax_rate_bps": self.tax_rate_bps,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_branding_dict(self) -> dict:
        """Public subset used by printable invoices and the login screen."""
        return {
            "id": self.id,
            "name": self.name,
            "sub_name": self.sub_name,
            "tagline": self.tagline,
            "slug": self.slug,
            "logo": self.logo,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
            "is_active": self.is_active,
        }
