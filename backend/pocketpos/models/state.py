from __future__ import annotations

from ..extensions import db
from ..time_utils import format_timestamp


class StateEntry(db.Model):
    """
    Durable key-value row, one per engine store (catalog, roster, costing, ledger).

    The value is the store's own JSON document; the engine rewrites the whole
    document after each mutation.
    """
    __tablename__ = "state_entries"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(64), nullable=False, unique=True, index=True)
    value_json = db.Column(db.JSON, nullable=True)

    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<StateEntry key={self.key!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key,
            "value_json": self.value_json,
            "updated_at": format_timestamp(self.updated_at),
        }
