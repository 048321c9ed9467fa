"""Profile service: just-in-time provisioning and editing."""

import hashlib
from collections.abc import Callable

import structlog

from core.exceptions import (
    ProfileAlreadyExistsError,
    ProfileNotFoundError,
    UsernameTakenError,
    ValidationFailedError,
)
from domain.entities.profile import (
    TELEGRAM_LINK_PATTERN,
    TWITTER_LINK_PATTERN,
    Profile,
    normalize_telegram_link,
    normalize_twitter_link,
)
from domain.repositories.unit_of_work import IUnitOfWork
from infrastructure.auth.provider import TokenUser

logger = structlog.get_logger()

USERNAME_MAX_LENGTH = 50


def default_username(user: TokenUser) -> str:
    """Email local part, else session name, else ``user_<id prefix>``."""
    if user.email and "@" in user.email:
        candidate = user.email.split("@", 1)[0]
    elif user.display_name:
        candidate = user.display_name
    else:
        candidate = f"user_{user.id[:6]}"
    return candidate.strip()[:USERNAME_MAX_LENGTH] or f"user_{user.id[:6]}"


def username_suffix(user_id: str) -> str:
    return hashlib.sha256(user_id.encode()).hexdigest()[:6]


class ProfileService:
    """Service layer for profile business logic."""

    def __init__(self, uow_factory: Callable[[TokenUser | None], IUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def ensure_profile(self, user: TokenUser) -> Profile:
        """Return the caller's profile, creating it on first use."""
        async with self._uow_factory(user) as uow:
            existing = await uow.profiles.get_by_user_id(user.id)
            if existing:
                return existing
            username = await self._pick_username(uow, user)

        try:
            return await self._create(user, username)
        except UsernameTakenError:
            # Username claimed between the check and the insert
            return await self._create(user, None)
        except ProfileAlreadyExistsError:
            async with self._uow_factory(user) as uow:
                profile = await uow.profiles.get_by_user_id(user.id)
            if profile is None:
                raise
            return profile

    async def _pick_username(self, uow: IUnitOfWork, user: TokenUser) -> str | None:
        base = default_username(user)
        if not await uow.profiles.get_by_username(base):
            return base
        suffixed = f"{base[: USERNAME_MAX_LENGTH - 7]}_{username_suffix(user.id)}"
        if not await uow.profiles.get_by_username(suffixed):
            return suffixed
        return None

    async def _create(self, user: TokenUser, username: str | None) -> Profile:
        async with self._uow_factory(user) as uow:
            profile = await uow.profiles.create(
                Profile(user_id=user.id, username=username, email=user.email)
            )
            await uow.commit()
        logger.info("profile_created", user_id=user.id)
        return profile

    async def get(self, user: TokenUser) -> Profile:
        """Get the caller's profile."""
        async with self._uow_factory(user) as uow:
            profile = await uow.profiles.get_by_user_id(user.id)
        if not profile:
            raise ProfileNotFoundError(user.id)
        return profile

    async def update(
        self,
        user: TokenUser,
        username: str,
        bio: str = "",
        twitter: str | None = None,
        telegram: str | None = None,
    ) -> Profile:
        """Update username, bio and social links.

        Raises:
            ValidationFailedError: for an empty username or malformed link
            UsernameTakenError: if another profile uses the username
        """
        username = (username or "").strip()
        if not username or len(username) > USERNAME_MAX_LENGTH:
            raise ValidationFailedError(
                f"Username must be 1-{USERNAME_MAX_LENGTH} characters", field="username"
            )

        twitter_link = normalize_twitter_link((twitter or "").strip() or None)
        if twitter_link and not TWITTER_LINK_PATTERN.match(twitter_link):
            raise ValidationFailedError("Invalid Twitter link", field="twitter")

        telegram_link = normalize_telegram_link((telegram or "").strip() or None)
        if telegram_link and not TELEGRAM_LINK_PATTERN.match(telegram_link):
            raise ValidationFailedError("Invalid Telegram link", field="telegram")

        async with self._uow_factory(user) as uow:
            profile = await uow.profiles.get_by_user_id(user.id)
            if not profile:
                raise ProfileNotFoundError(user.id)

            holder = await uow.profiles.get_by_username(username)
            if holder and holder.user_id != user.id:
                raise UsernameTakenError(username)

            profile.username = username
            profile.bio = bio or ""
            profile.twitter_link = twitter_link
            profile.telegram_link = telegram_link
            updated = await uow.profiles.update_details(profile)
            await uow.commit()

        logger.info("profile_updated", user_id=user.id)
        return updated
