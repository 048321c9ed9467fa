"""Unit tests for FavoriteService."""

import asyncio

import pytest

from core.exceptions import AuthorizationError, ValidationFailedError
from core.locks import KeyedLock
from domain.services.favorite_service import FavoriteService


@pytest.fixture
def service(uow_factory) -> FavoriteService:
    return FavoriteService(uow_factory)


class TestListFavorites:
    @pytest.mark.asyncio
    async def test_returns_stored_ids(self, service, caller, uow):
        uow.favorites.list_for_user.return_value = ["bitcoin", "ethereum"]

        favorites = await service.get_all_for_user(caller)

        assert favorites == ["bitcoin", "ethereum"]
        uow.favorites.list_for_user.assert_awaited_once_with(caller.id)


class TestReplaceFavorites:
    @pytest.mark.asyncio
    async def test_normalizes_and_stores(self, service, caller, uow):
        stored = await service.replace(caller, caller.id, ["Bitcoin", "ethereum", "BITCOIN"])

        assert stored == ["bitcoin", "ethereum"]
        uow.favorites.replace_all.assert_awaited_once_with(caller.id, ["bitcoin", "ethereum"])
        assert uow.committed is True

    @pytest.mark.asyncio
    async def test_empty_list_clears(self, service, caller, uow):
        stored = await service.replace(caller, caller.id, [])

        assert stored == []
        uow.favorites.replace_all.assert_awaited_once_with(caller.id, [])

    @pytest.mark.asyncio
    async def test_other_user_forbidden(self, service, caller, uow):
        with pytest.raises(AuthorizationError):
            await service.replace(caller, "google-oauth2|2002", ["bitcoin"])
        uow.favorites.replace_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_too_many(self, service, caller, uow):
        with pytest.raises(ValidationFailedError) as exc_info:
            await service.replace(caller, caller.id, [f"token-{i}" for i in range(201)])
        assert exc_info.value.details == {"field": "favorites"}
        uow.favorites.replace_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_exactly_the_limit(self, service, caller, uow):
        stored = await service.replace(caller, caller.id, [f"token-{i}" for i in range(200)])

        assert len(stored) == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token_id", ["", "has space", "semi;colon", "x" * 101, "ünicode"])
    async def test_invalid_token_id(self, service, caller, uow, token_id):
        with pytest.raises(ValidationFailedError):
            await service.replace(caller, caller.id, ["bitcoin", token_id])
        uow.favorites.replace_all.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_replaces_for_same_user_do_not_interleave(self, uow_factory, caller, uow):
        active = 0
        overlapped = False

        async def slow_replace(user_id, token_ids):
            nonlocal active, overlapped
            active += 1
            overlapped = overlapped or active > 1
            await asyncio.sleep(0.01)
            active -= 1

        uow.favorites.replace_all.side_effect = slow_replace
        locks = KeyedLock()
        service = FavoriteService(uow_factory, locks=locks)

        await asyncio.gather(
            service.replace(caller, caller.id, ["bitcoin"]),
            service.replace(caller, caller.id, ["ethereum"]),
            service.replace(caller, caller.id, ["solana"]),
        )

        assert overlapped is False
        assert uow.favorites.replace_all.await_count == 3
