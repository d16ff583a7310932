"""User service - users and their linked fitness platforms."""

import logging

from sqlalchemy.orm import Session

from integrations.provider_protocol import Platform, ProviderCredential
from models import ProviderLink, User

logger = logging.getLogger(__name__)


class UserService:
    """Service for looking up and provisioning provider links."""

    @staticmethod
    def get_credentials(db: Session, user_id: int) -> dict[Platform, ProviderCredential]:
        """Return the user's linked credentials keyed by platform.

        Links naming a platform this service does not know are skipped
        with a warning. An unknown user simply has no credentials.
        """
        links = db.query(ProviderLink).filter(ProviderLink.user_id == user_id).all()
        credentials: dict[Platform, ProviderCredential] = {}
        for link in links:
            try:
                credential = link.to_credential()
            except ValueError:
                logger.warning(
                    "User %d has a link to unknown platform %r, skipping",
                    user_id,
                    link.platform,
                )
                continue
            credentials[credential.platform] = credential
        return credentials

    @staticmethod
    def link_provider(
        db: Session,
        user_id: int,
        platform: Platform,
        access_token: str,
        external_user_id: str | None = None,
    ) -> ProviderLink:
        """Create the user if needed and link (or relink) a platform.

        Args:
            db: Database session
            user_id: Id of the user to link
            platform: Platform being linked
            access_token: The user's upstream access token
            external_user_id: The platform's id for the user, if known

        Returns:
            The created or updated ProviderLink (flushed, not committed)
        """
        if not access_token or not access_token.strip():
            raise ValueError("access_token must not be empty")

        user = db.get(User, user_id)
        if user is None:
            user = User(id=user_id)
            db.add(user)
            db.flush()
            logger.info("Created user %d", user_id)

        link = (
            db.query(ProviderLink)
            .filter_by(user_id=user_id, platform=platform.value)
            .first()
        )
        if link is None:
            link = ProviderLink(
                user_id=user_id,
                platform=platform.value,
                access_token=access_token,
                external_user_id=external_user_id,
            )
            db.add(link)
            logger.info("Linked %s for user %d", platform.value, user_id)
        else:
            link.access_token = access_token
            link.external_user_id = external_user_id
            logger.info("Relinked %s for user %d", platform.value, user_id)

        db.flush()
        return link
