"""Tests for the users module."""

from unittest.mock import AsyncMock

import asyncpg
import pytest

from common.errors import Conflict, InternalError, NotFound, ValidationError
from users import UserManager
from tests.conftest import ALICE, STRANGER


@pytest.mark.asyncio
async def test_create_user(user_repository):
    manager = UserManager(user_repository)

    user = await manager.create_user(ALICE)

    assert user.address == ALICE
    assert user.nickname == ""
    assert user.followers == 0


@pytest.mark.asyncio
async def test_create_user_twice_is_conflict(user_manager):
    with pytest.raises(Conflict) as exc:
        await user_manager.create_user(ALICE)
    assert exc.value.message == "user already exists"


@pytest.mark.asyncio
async def test_create_user_race_is_conflict(user_repository):
    user_repository.create = AsyncMock(side_effect=asyncpg.UniqueViolationError("duplicate key"))

    with pytest.raises(Conflict):
        await UserManager(user_repository).create_user(STRANGER)


@pytest.mark.asyncio
async def test_create_user_requires_address(user_manager):
    with pytest.raises(ValidationError):
        await user_manager.create_user("")


@pytest.mark.asyncio
@pytest.mark.parametrize("address", [
    "0x1234",
    "0x" + "a1" * 31 + "a|",
    ALICE[2:] + "00",
    ALICE + "\n",
    "0x" + "zz" * 32,
])
async def test_create_user_rejects_malformed_address(user_repository, address):
    with pytest.raises(ValidationError) as exc:
        await UserManager(user_repository).create_user(address)
    assert exc.value.message == "invalid address"
    assert user_repository.users == {}


@pytest.mark.asyncio
async def test_get_profile(user_manager):
    assert (await user_manager.get_profile(ALICE)).address == ALICE

    with pytest.raises(NotFound) as exc:
        await user_manager.get_profile(STRANGER)
    assert exc.value.entity == "user"


@pytest.mark.asyncio
async def test_update_profile(user_manager):
    user = await user_manager.update_profile(ALICE, nickname="alice", bio="Gardener")

    assert user.nickname == "alice"
    assert user.bio == "Gardener"
    assert user.avatar is None


@pytest.mark.asyncio
async def test_update_profile_without_changes_returns_profile(user_manager):
    user = await user_manager.update_profile(ALICE)
    assert user.address == ALICE


@pytest.mark.asyncio
@pytest.mark.parametrize("nickname", ["a", "x" * 51])
async def test_update_profile_nickname_bounds(user_manager, nickname):
    with pytest.raises(ValidationError):
        await user_manager.update_profile(ALICE, nickname=nickname)


@pytest.mark.asyncio
async def test_update_missing_user(user_manager):
    with pytest.raises(NotFound):
        await user_manager.update_profile(STRANGER, bio="hello")


@pytest.mark.asyncio
async def test_storage_failure_is_internal_error(user_repository):
    user_repository.get_by_address = AsyncMock(side_effect=OSError("connection refused"))

    with pytest.raises(InternalError):
        await UserManager(user_repository).get_profile(ALICE)
