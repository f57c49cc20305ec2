"""Users module for managing wallet-addressed profiles.

This module provides functionality for:
- Registering a user by Aptos address
- Reading and updating profile fields
"""

import logging
import re
from typing import Optional

import asyncpg

from common.errors import AppError, Conflict, InternalError, NotFound, ValidationError
from .db import UserRepository
from .models import User

logger = logging.getLogger(__name__)

# Aptos account address: 0x followed by 32 bytes of hex
ADDRESS_PATTERN = r'^0x[0-9a-fA-F]{64}$'

NICKNAME_MIN_LENGTH = 2
NICKNAME_MAX_LENGTH = 50


class UserManager:
    """Manager class for handling user profile operations."""

    def __init__(self, repository: UserRepository):
        """Initialize the user manager.

        Args:
            repository: User storage collaborator
        """
        self.users = repository

    async def create_user(self, address: str) -> User:
        """Register a new user.

        Args:
            address: The user's Aptos account address

        Returns:
            The created user

        Raises:
            ValidationError: If the address is empty or malformed
            Conflict: If a user with this address already exists
        """
        if not address:
            raise ValidationError("address is required")
        if not re.fullmatch(ADDRESS_PATTERN, address):
            raise ValidationError("invalid address")

        try:
            if await self.users.get_by_address(address):
                raise Conflict("user already exists")
            user = await self.users.create(address)
            logger.info(f"Registered user {address}")
            return user

        except asyncpg.UniqueViolationError:
            raise Conflict("user already exists")
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error creating user {address}: {e}")
            raise InternalError("Failed to create user", cause=e)

    async def get_profile(self, address: str) -> User:
        """Get a user's profile.

        Raises:
            NotFound: If the user does not exist
        """
        try:
            user = await self.users.get_by_address(address)
        except Exception as e:
            logger.error(f"Error loading profile {address}: {e}")
            raise InternalError("Failed to load profile", cause=e)

        if not user:
            raise NotFound("user")
        return user

    async def update_profile(
        self,
        address: str,
        nickname: Optional[str] = None,
        avatar: Optional[str] = None,
        bio: Optional[str] = None
    ) -> User:
        """Update the mutable profile fields that were provided.

        Raises:
            ValidationError: If the nickname length is out of bounds
            NotFound: If the user does not exist
        """
        updates = {
            key: value
            for key, value in (('nickname', nickname), ('avatar', avatar), ('bio', bio))
            if value is not None
        }

        if nickname is not None and not NICKNAME_MIN_LENGTH <= len(nickname) <= NICKNAME_MAX_LENGTH:
            raise ValidationError(
                f"nickname must be between {NICKNAME_MIN_LENGTH} and {NICKNAME_MAX_LENGTH} characters"
            )

        if not updates:
            return await self.get_profile(address)

        try:
            user = await self.users.update(address, updates)
        except Exception as e:
            logger.error(f"Error updating profile {address}: {e}")
            raise InternalError("Failed to update profile", cause=e)

        if not user:
            raise NotFound("user")
        return user


__all__ = ['ADDRESS_PATTERN', 'UserManager', 'UserRepository', 'User']
