"""SQLAlchemy implementation of Profile repository."""

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ProfileAlreadyExistsError, UsernameTakenError, WalletTakenError
from domain.entities.profile import Profile
from infrastructure.database.errors import is_unique_violation, mentions_column
from infrastructure.database.models import ProfileModel


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SQLAlchemyProfileRepository:
    """SQLAlchemy implementation of IProfileRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _get_model(self, user_id: str) -> ProfileModel | None:
        stmt = select(ProfileModel).where(ProfileModel.user_id == user_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_user_id(self, user_id: str) -> Profile | None:
        """Get the profile owned by a session subject."""
        model = await self._get_model(user_id)
        return self._to_entity(model) if model else None

    async def get_by_wallet(self, wallet_address: str) -> Profile | None:
        """Get the profile holding a wallet address."""
        stmt = select(ProfileModel).where(ProfileModel.wallet_address == wallet_address.lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_username(self, username: str) -> Profile | None:
        """Get a profile by username."""
        stmt = select(ProfileModel).where(ProfileModel.username == username)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, profile: Profile) -> Profile:
        """Create a new profile."""
        model = self._to_model(profile)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            if not is_unique_violation(exc):
                raise
            if profile.username and mentions_column(exc, "username"):
                raise UsernameTakenError(profile.username) from exc
            raise ProfileAlreadyExistsError(profile.user_id) from exc
        await self._session.refresh(model)
        return self._to_entity(model)

    async def set_wallet(
        self, user_id: str, wallet_address: str, linked_at: datetime
    ) -> Profile | None:
        """Store a wallet on the user's row."""
        model = await self._get_model(user_id)
        if not model:
            return None

        model.wallet_address = wallet_address.lower()
        model.wallet_linked_at = linked_at
        try:
            await self._session.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise WalletTakenError() from exc
            raise
        await self._session.refresh(model)
        return self._to_entity(model)

    async def clear_wallet(self, user_id: str) -> Profile | None:
        """Remove the wallet from the user's row."""
        model = await self._get_model(user_id)
        if not model:
            return None

        model.wallet_address = None
        model.wallet_linked_at = None
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update_details(self, profile: Profile) -> Profile:
        """Persist username, bio and social links."""
        model = await self._get_model(profile.user_id)
        if not model:
            raise ValueError(f"Profile {profile.user_id} not found")

        model.username = profile.username
        model.bio = profile.bio
        model.twitter_link = profile.twitter_link
        model.telegram_link = profile.telegram_link
        try:
            await self._session.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc) and profile.username:
                raise UsernameTakenError(profile.username) from exc
            raise
        await self._session.refresh(model)
        return self._to_entity(model)

    def _to_entity(self, model: ProfileModel) -> Profile:
        """Convert ORM model to domain entity."""
        return Profile(
            id=model.id,
            user_id=model.user_id,
            username=model.username,
            email=model.email,
            bio=model.bio or "",
            twitter_link=model.twitter_link,
            telegram_link=model.telegram_link,
            wallet_address=model.wallet_address,
            wallet_linked_at=_aware(model.wallet_linked_at),
            created_at=_aware(model.created_at),  # type: ignore[arg-type]
            updated_at=_aware(model.updated_at),  # type: ignore[arg-type]
        )

    def _to_model(self, entity: Profile) -> ProfileModel:
        """Convert domain entity to ORM model."""
        return ProfileModel(
            id=entity.id,
            user_id=entity.user_id,
            username=entity.username,
            email=entity.email,
            bio=entity.bio,
            twitter_link=entity.twitter_link,
            telegram_link=entity.telegram_link,
            wallet_address=entity.wallet_address,
            wallet_linked_at=entity.wallet_linked_at,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )
