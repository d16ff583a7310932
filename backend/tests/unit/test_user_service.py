"""Tests for UserService."""

import pytest

from integrations.provider_protocol import Platform, ProviderCredential
from models import ProviderLink, User
from services.user_service import UserService


class TestLinkProvider:
    """Tests for UserService.link_provider()."""

    def test_creates_user_and_link(self, db):
        link = UserService.link_provider(db, 7, Platform.FITBIT, "tok", external_user_id="22ABCD")
        db.commit()

        assert db.get(User, 7) is not None
        assert link.platform == "fitbit"
        assert link.access_token == "tok"
        assert link.external_user_id == "22ABCD"

    def test_existing_user_is_reused(self, db, user):
        UserService.link_provider(db, user.id, Platform.GOOGLE, "tok")
        db.commit()
        assert db.query(User).count() == 1

    def test_relink_replaces_token(self, db):
        UserService.link_provider(db, 1, Platform.STRAVA, "old")
        UserService.link_provider(db, 1, Platform.STRAVA, "new")
        db.commit()

        links = db.query(ProviderLink).filter_by(user_id=1).all()
        assert len(links) == 1
        assert links[0].access_token == "new"

    @pytest.mark.parametrize("token", ["", "   "])
    def test_empty_token_rejected(self, db, token):
        with pytest.raises(ValueError, match="access_token"):
            UserService.link_provider(db, 1, Platform.FITBIT, token)


class TestGetCredentials:
    """Tests for UserService.get_credentials()."""

    def test_returns_credentials_by_platform(self, db, linked_user):
        credentials = UserService.get_credentials(db, linked_user.id)

        assert set(credentials) == {Platform.FITBIT, Platform.GOOGLE, Platform.STRAVA}
        assert credentials[Platform.GOOGLE] == ProviderCredential(
            platform=Platform.GOOGLE, access_token="google-token"
        )

    def test_unknown_user_has_no_credentials(self, db):
        assert UserService.get_credentials(db, 999) == {}

    def test_unknown_platform_skipped(self, db, user, caplog):
        db.add(ProviderLink(user_id=user.id, platform="garmin", access_token="tok"))
        UserService.link_provider(db, user.id, Platform.FITBIT, "tok")
        db.commit()

        credentials = UserService.get_credentials(db, user.id)

        assert list(credentials) == [Platform.FITBIT]
        assert "garmin" in caplog.text
