"""Mapping of ledger campaign ids onto stored campaigns.

The contract numbers each creator's campaigns 1, 2, 3... in creation order,
but a campaign row only learns its number once it is backfilled. Until then
the position of the row among the creator's campaigns is the best guess.
"""
from typing import Sequence, Tuple

from .models import Campaign


class PositionalContractIdResolver:
    """Resolve a ledger id by chronological position among a creator's campaigns."""

    def resolve(self, contract_id: int, campaigns: Sequence[Campaign]) -> Tuple[Campaign, bool]:
        """Pick the campaign a ledger id most likely refers to.

        Args:
            contract_id: 1-based ledger id
            campaigns: The creator's campaigns, oldest first. Must not be empty.

        Returns:
            Tuple of (campaign, positional). positional is False when the id was
            out of range and the most recent campaign was returned instead.
        """
        index = contract_id - 1
        if 0 <= index < len(campaigns):
            return campaigns[index], True
        return campaigns[-1], False
