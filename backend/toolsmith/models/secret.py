"""Secret model for encrypted secret values.

A secret is addressed by its key. Tools refer to secrets by putting the
key where a credential or environment value is expected.
"""

from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from toolsmith.models.base import Base, TimestampMixin


class Secret(TimestampMixin, Base):
    """Stored secret value.

    Attributes:
        key: Primary key, the reference tools use
        value: Ciphertext (or base64 text in the degraded scheme)
        scheme: Storage scheme tag, ``fernet`` or ``base64``
        created_at: Timestamp of creation (from TimestampMixin)
        updated_at: Timestamp of last update (from TimestampMixin)
    """

    __tablename__ = "secrets"

    key: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
    )

    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    scheme: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    def __repr__(self) -> str:
        """Return string representation without the stored value."""
        return f"<Secret(key='{self.key}', scheme={self.scheme})>"


__all__ = ["Secret"]
