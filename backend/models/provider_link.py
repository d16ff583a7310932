"""ProviderLink model - a user's credential for one fitness platform."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from database import Base
from integrations.provider_protocol import Platform, ProviderCredential


class ProviderLink(Base):
    """Links a user to one upstream platform.

    A user has at most one link per platform. The stored access token is
    assumed valid; refreshing it is handled outside this service.
    """

    __tablename__ = "provider_links"
    __table_args__ = (
        UniqueConstraint("user_id", "platform", name="uix_user_platform"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    platform = Column(String, nullable=False)  # Platform enum value, e.g. "fitbit"
    access_token = Column(String, nullable=False)
    external_user_id = Column(String, nullable=True)  # Platform's id for the user
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user = relationship("User", back_populates="provider_links")

    def to_credential(self) -> ProviderCredential:
        """Detach the credential from the ORM row for use off the request thread."""
        return ProviderCredential(
            platform=Platform(self.platform),
            access_token=self.access_token,
            external_user_id=self.external_user_id,
        )
