"""Messages module for user-to-user conversation threads.

This module provides functionality for:
- Sending a message, creating the thread on first contact
- Listing all of a user's messages across threads
- Reading a single thread and marking the counterpart's messages as read

A thread is identified by its two participants, sorted, together with the
ledger id of the campaign it is about (or none).
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from common.errors import AppError, InternalError, NotFound, ValidationError
from common.pagination import Page, build_page, paginate, validate_pagination
from .db import ConversationRepository, canonical_participants, thread_key
from .models import Conversation, Message

logger = logging.getLogger(__name__)

MESSAGE_MAX_LENGTH = 1000


def _parse_campaign_id(campaign_id: Optional[Any]) -> Optional[int]:
    if campaign_id is None or campaign_id == '':
        return None
    if isinstance(campaign_id, bool):
        raise ValidationError("invalid campaign id")
    try:
        return int(campaign_id)
    except (TypeError, ValueError):
        raise ValidationError("invalid campaign id")


class MessageManager:
    """Manager class for handling conversation operations."""

    def __init__(
        self,
        conversations: ConversationRepository,
        users,
        campaigns,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """Initialize the message manager.

        Args:
            conversations: Conversation storage collaborator
            users: User storage collaborator, used to check participants exist
            campaigns: Campaign storage collaborator, used to check campaign tags
            clock: Returns the current UTC time, defaults to datetime.now
        """
        self.conversations = conversations
        self.users = users
        self.campaigns = campaigns
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def send_message(
        self,
        sender_address: str,
        receiver_address: str,
        message: str,
        subject: Optional[str] = None,
        campaign_id: Optional[Any] = None
    ) -> Message:
        """Append a message to the thread between sender and receiver.

        Args:
            sender_address: Address of the sending user
            receiver_address: Address of the receiving user
            message: Message text (1-1000 characters)
            subject: Optional subject line
            campaign_id: Optional ledger id of the campaign the thread is about

        Returns:
            The stored message

        Raises:
            ValidationError: If the message is invalid or sender and receiver match
            NotFound: If either user or the campaign does not exist
        """
        if not sender_address or not receiver_address:
            raise ValidationError("missing required fields")
        if not message or len(message) > MESSAGE_MAX_LENGTH:
            raise ValidationError(f"message must be between 1 and {MESSAGE_MAX_LENGTH} characters")
        if sender_address == receiver_address:
            raise ValidationError("cannot send a message to yourself")
        campaign_id = _parse_campaign_id(campaign_id)

        try:
            sender, receiver = await asyncio.gather(
                self.users.get_by_address(sender_address),
                self.users.get_by_address(receiver_address)
            )
            if not sender:
                raise NotFound("sender")
            if not receiver:
                raise NotFound("receiver")

            if campaign_id is not None and not await self.campaigns.exists_with_contract_id(campaign_id):
                raise NotFound("campaign")

            now = self.clock()
            record = Message(
                id=uuid.uuid4(),
                sender_address=sender_address,
                receiver_address=receiver_address,
                message=message,
                subject=subject,
                campaign_id=campaign_id,
                is_read=False,
                created_at=now,
                updated_at=now
            )
            key = thread_key(sender_address, receiver_address, campaign_id)
            await self.conversations.append(
                key,
                canonical_participants(sender_address, receiver_address),
                campaign_id,
                record
            )
            logger.debug(f"Appended message {record.id} to thread {key}")
            return record

        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error sending message from {sender_address}: {e}")
            raise InternalError("Failed to send message", cause=e)

    async def get_user_messages(
        self,
        address: str,
        page: Optional[Any] = None,
        page_size: Optional[Any] = None
    ) -> Page:
        """All messages sent or received by a user, newest first.

        Raises:
            ValidationError: If the address is missing or pagination is invalid
        """
        page, page_size = validate_pagination(page, page_size)
        if not address:
            raise ValidationError("address is required")

        try:
            conversations = await self.conversations.list_for_participant(address)
        except Exception as e:
            logger.error(f"Error loading conversations for {address}: {e}")
            raise InternalError("Failed to load messages", cause=e)

        flattened = [item for conversation in conversations for item in conversation.messages]
        flattened.sort(key=lambda item: item.created_at, reverse=True)
        return paginate(flattened, page, page_size)

    async def get_conversation(
        self,
        user_address: str,
        other_address: str,
        campaign_id: Optional[Any] = None,
        page: Optional[Any] = None,
        page_size: Optional[Any] = None
    ) -> Page:
        """A page of the thread between two users, oldest first.

        Every unread message the other user sent in the thread is marked as
        read. The returned page shows the read state from before marking.

        Raises:
            ValidationError: If an address is missing or pagination is invalid
        """
        page, page_size = validate_pagination(page, page_size)
        if not user_address or not other_address:
            raise ValidationError("missing required fields")
        campaign_id = _parse_campaign_id(campaign_id)

        key = thread_key(user_address, other_address, campaign_id)
        try:
            conversation = await self.conversations.read_and_mark(key, other_address)
        except Exception as e:
            logger.error(f"Error loading thread {key}: {e}")
            raise InternalError("Failed to load conversation", cause=e)

        if not conversation:
            return build_page([], 0, page, page_size)

        history = sorted(conversation.messages, key=lambda item: item.created_at)
        return paginate(history, page, page_size)


__all__ = [
    'MessageManager',
    'ConversationRepository',
    'Conversation',
    'Message',
    'thread_key',
    'canonical_participants'
]
