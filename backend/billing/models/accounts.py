from __future__ import annotations

from ..extensions import db
from billing.time_utils import to_utc_z


class Account(db.Model):
    """
    Owning business account (tenant).

    MULTI-TENANT: every product, customer, rule, invoice and challan carries
    account_id. Document numbers are sequenced per account.
    """
    __tablename__ = "accounts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=False, unique=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Account {self.code}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
        }
