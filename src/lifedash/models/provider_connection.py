"""Stored OAuth tokens for a user's connection to a data provider."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from lifedash.models.base import BaseModel

SUPPORTED_PROVIDERS = ("google_fit", "dexcom", "capitalone", "quickbooks")


class ProviderConnection(BaseModel):
    __tablename__ = "provider_connections"

    user_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # QuickBooks company id
    realm_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "provider", name="uq_provider_connection_user_provider"),
    )

    def __repr__(self) -> str:
        # Never include tokens.
        return f"<ProviderConnection(user_id={self.user_id}, provider={self.provider})>"
