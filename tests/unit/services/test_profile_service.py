"""Unit tests for ProfileService."""

import pytest

from core.exceptions import (
    ProfileAlreadyExistsError,
    ProfileNotFoundError,
    UsernameTakenError,
    ValidationFailedError,
)
from domain.entities.profile import Profile
from domain.services.profile_service import (
    ProfileService,
    default_username,
    username_suffix,
)
from infrastructure.auth.provider import TokenUser


@pytest.fixture
def service(uow_factory) -> ProfileService:
    return ProfileService(uow_factory)


class TestDefaultUsername:
    def test_email_local_part(self):
        assert default_username(TokenUser(id="u1", email="alice@example.com")) == "alice"

    def test_display_name_without_email(self):
        assert default_username(TokenUser(id="u1", display_name="Alice")) == "Alice"

    def test_id_prefix_fallback(self):
        assert default_username(TokenUser(id="wallet:0xabc")) == "user_wallet"

    def test_truncated_to_column_width(self):
        user = TokenUser(id="u1", email=("a" * 80) + "@example.com")
        assert len(default_username(user)) == 50

    def test_suffix_is_stable(self):
        assert username_suffix("u1") == username_suffix("u1")
        assert len(username_suffix("u1")) == 6
        assert username_suffix("u1") != username_suffix("u2")


class TestEnsureProfile:
    @pytest.mark.asyncio
    async def test_returns_existing(self, service, caller, uow):
        existing = Profile(user_id=caller.id, username="alice")
        uow.profiles.get_by_user_id.return_value = existing

        profile = await service.ensure_profile(caller)

        assert profile is existing
        uow.profiles.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_creates_with_default_username(self, service, caller, uow):
        uow.profiles.get_by_user_id.return_value = None
        uow.profiles.get_by_username.return_value = None
        uow.profiles.create.side_effect = lambda profile: profile

        profile = await service.ensure_profile(caller)

        assert profile.user_id == caller.id
        assert profile.username == "alice"
        assert profile.email == caller.email
        assert uow.committed is True

    @pytest.mark.asyncio
    async def test_suffixes_taken_username(self, service, caller, uow):
        uow.profiles.get_by_user_id.return_value = None
        uow.profiles.get_by_username.side_effect = [Profile(user_id="other"), None]
        uow.profiles.create.side_effect = lambda profile: profile

        profile = await service.ensure_profile(caller)

        assert profile.username == f"alice_{username_suffix(caller.id)}"

    @pytest.mark.asyncio
    async def test_no_username_when_both_taken(self, service, caller, uow):
        uow.profiles.get_by_user_id.return_value = None
        uow.profiles.get_by_username.return_value = Profile(user_id="other")
        uow.profiles.create.side_effect = lambda profile: profile

        profile = await service.ensure_profile(caller)

        assert profile.username is None

    @pytest.mark.asyncio
    async def test_username_race_retries_without_username(self, service, caller, uow):
        uow.profiles.get_by_user_id.return_value = None
        uow.profiles.get_by_username.return_value = None
        uow.profiles.create.side_effect = [
            UsernameTakenError("alice"),
            Profile(user_id=caller.id, username=None),
        ]

        profile = await service.ensure_profile(caller)

        assert profile.username is None
        assert uow.profiles.create.await_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_insert_returns_winner(self, service, caller, uow):
        winner = Profile(user_id=caller.id, username="alice")
        uow.profiles.get_by_user_id.side_effect = [None, winner]
        uow.profiles.get_by_username.return_value = None
        uow.profiles.create.side_effect = ProfileAlreadyExistsError(caller.id)

        profile = await service.ensure_profile(caller)

        assert profile is winner

    @pytest.mark.asyncio
    async def test_concurrent_insert_without_row_reraises(self, service, caller, uow):
        uow.profiles.get_by_user_id.return_value = None
        uow.profiles.get_by_username.return_value = None
        uow.profiles.create.side_effect = ProfileAlreadyExistsError(caller.id)

        with pytest.raises(ProfileAlreadyExistsError):
            await service.ensure_profile(caller)


class TestGetProfile:
    @pytest.mark.asyncio
    async def test_get(self, service, caller, uow):
        uow.profiles.get_by_user_id.return_value = Profile(user_id=caller.id)

        profile = await service.get(caller)

        assert profile.user_id == caller.id

    @pytest.mark.asyncio
    async def test_get_missing(self, service, caller, uow):
        uow.profiles.get_by_user_id.return_value = None

        with pytest.raises(ProfileNotFoundError) as exc_info:
            await service.get(caller)
        assert exc_info.value.status_code == 404


class TestUpdateProfile:
    @pytest.fixture
    def editable(self, uow, caller):
        uow.profiles.get_by_user_id.return_value = Profile(user_id=caller.id, username="alice")
        uow.profiles.get_by_username.return_value = None
        uow.profiles.update_details.side_effect = lambda profile: profile
        return uow

    @pytest.mark.asyncio
    async def test_update_all_fields(self, service, caller, editable):
        profile = await service.update(
            caller,
            username="  alice_w3  ",
            bio="gm",
            twitter="@alice_w3",
            telegram="alice_w3",
        )

        assert profile.username == "alice_w3"
        assert profile.bio == "gm"
        assert profile.twitter_link == "https://twitter.com/alice_w3"
        assert profile.telegram_link == "https://t.me/alice_w3"
        assert editable.committed is True

    @pytest.mark.asyncio
    async def test_blank_links_are_cleared(self, service, caller, editable):
        profile = await service.update(caller, username="alice", twitter="  ", telegram="")

        assert profile.twitter_link is None
        assert profile.telegram_link is None

    @pytest.mark.asyncio
    async def test_keeping_own_username(self, service, caller, editable):
        editable.profiles.get_by_username.return_value = Profile(user_id=caller.id)

        profile = await service.update(caller, username="alice")

        assert profile.username == "alice"

    @pytest.mark.asyncio
    async def test_blank_username(self, service, caller, editable):
        with pytest.raises(ValidationFailedError) as exc_info:
            await service.update(caller, username="   ")
        assert exc_info.value.details == {"field": "username"}

    @pytest.mark.asyncio
    async def test_invalid_twitter(self, service, caller, editable):
        with pytest.raises(ValidationFailedError) as exc_info:
            await service.update(caller, username="alice", twitter="https://example.com/alice")
        assert exc_info.value.details == {"field": "twitter"}

    @pytest.mark.asyncio
    async def test_invalid_telegram(self, service, caller, editable):
        with pytest.raises(ValidationFailedError) as exc_info:
            await service.update(caller, username="alice", telegram="@abc")
        assert exc_info.value.details == {"field": "telegram"}
        assert editable.committed is False

    @pytest.mark.asyncio
    async def test_username_taken(self, service, caller, editable):
        editable.profiles.get_by_username.return_value = Profile(user_id="someone-else")

        with pytest.raises(UsernameTakenError):
            await service.update(caller, username="bob")
        editable.profiles.update_details.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_profile(self, service, caller, editable):
        editable.profiles.get_by_user_id.return_value = None

        with pytest.raises(ProfileNotFoundError):
            await service.update(caller, username="alice")
