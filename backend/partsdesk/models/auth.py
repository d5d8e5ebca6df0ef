from __future__ import annotations

from ..extensions import db
from partsdesk.time_utils import to_utc_z, utcnow


class User(db.Model):
    """
    Shop staff account.

    Created from the CLI at setup time; read on every login.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("username", name="uq_users_username"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"

    def to_dict(self) -> dict:
        # password_hash is never serialised
        return {
            "id": self.id,
            "username": self.username,
            "createdAt": to_utc_z(self.created_at),
        }
