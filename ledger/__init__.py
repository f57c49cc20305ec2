"""Ledger module for interacting with an Aptos fullnode.

Only read paths are implemented: view functions of the campaigns contract
and transaction lookups by hash. Requests are blocking; async callers run
them through asyncio.to_thread.
"""
import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel

from common.errors import InternalError, NotFound

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds

# Entry functions that move APT; the amount is their second argument
TRANSFER_FUNCTIONS = {
    '0x1::aptos_account::transfer',
    '0x1::coin::transfer',
    '0x1::aptos_account::transfer_coins'
}

WITHDRAW_EVENT_TYPES = (
    '0x1::coin::WithdrawEvent',
    '0x1::fungible_asset::Withdraw'
)


class LedgerError(InternalError):
    """Base exception for ledger errors"""
    def __init__(self, message: str, status: Optional[int] = None, path: Optional[str] = None):
        self.status = status
        self.path = path
        super().__init__(f"Ledger error [{status}] on {path}: {message}" if status else message)


class LedgerConnectionError(LedgerError):
    """Raised when the fullnode cannot be reached"""
    pass


class Settlement(BaseModel):
    """Outcome of a value transfer as recorded on the ledger."""
    tx_hash: str
    success: bool
    sender: Optional[str] = None
    amount: Optional[int] = None
    vm_status: Optional[str] = None


def extract_transfer_amount(tx: Dict[str, Any]) -> Optional[int]:
    """Find the transferred amount in octas.

    Uses the transfer payload argument when the transaction called a known
    transfer function, otherwise the first withdraw event.
    """
    payload = tx.get('payload') or {}
    if payload.get('function') in TRANSFER_FUNCTIONS:
        arguments = payload.get('arguments') or []
        if len(arguments) > 1:
            try:
                return int(arguments[1])
            except (TypeError, ValueError):
                pass

    for event in tx.get('events') or []:
        if str(event.get('type', '')).startswith(WITHDRAW_EVENT_TYPES):
            try:
                return int(event['data']['amount'])
            except (KeyError, TypeError, ValueError):
                continue

    return None


class AptosClient:
    """Aptos fullnode REST client"""

    def __init__(
        self,
        node_url: str,
        contract_address: str,
        module: str,
        session: Optional[requests.Session] = None
    ):
        """Initialize the client.

        Args:
            node_url: Fullnode REST base URL, e.g. https://fullnode.testnet.aptoslabs.com/v1
            contract_address: Account that published the campaigns module
            module: Name of the campaigns module
            session: Optional pre-configured requests session
        """
        self.node_url = node_url.rstrip('/')
        self.contract_address = contract_address
        self.module = module

        self.session = session or requests.Session()
        self.session.headers['content-type'] = 'application/json'

    def _request(self, method: str, path: str, **kwargs) -> Any:
        """Make a REST call to the fullnode

        Raises:
            LedgerConnectionError: Connection to node failed
            NotFound: Node answered 404
            LedgerError: Node returned another error
        """
        url = f"{self.node_url}{path}"

        try:
            response = self.session.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)

            if response.status_code == 404:
                raise NotFound("transaction" if path.startswith('/transactions') else "resource")

            if response.status_code >= 400:
                try:
                    message = response.json().get('message', response.text)
                except ValueError:
                    message = response.text
                raise LedgerError(message, response.status_code, path)

            return response.json()

        except requests.exceptions.Timeout as e:
            raise LedgerConnectionError(
                f"Request timed out after {REQUEST_TIMEOUT} seconds", path=path
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise LedgerConnectionError(
                f"Failed to connect to Aptos node at {self.node_url}", path=path
            ) from e
        except requests.exceptions.JSONDecodeError as e:
            raise LedgerError(f"Invalid response format: {str(e)}", path=path) from e
        except requests.exceptions.RequestException as e:
            raise LedgerConnectionError(f"Request failed: {str(e)}", path=path) from e

    def view(self, function: str, arguments: Optional[List[Any]] = None,
             type_arguments: Optional[List[str]] = None) -> List[Any]:
        """Call a view function of the campaigns module.

        Args:
            function: Function name inside the module
            arguments: Function arguments, stringified as the REST API expects

        Returns:
            The list of returned values
        """
        payload = {
            'function': f"{self.contract_address}::{self.module}::{function}",
            'type_arguments': type_arguments or [],
            'arguments': [str(arg) for arg in (arguments or [])]
        }
        return self._request('POST', '/view', json=payload)

    def get_total_campaigns(self, creator_address: str) -> int:
        """Number of campaigns the creator has registered on the ledger."""
        result = self.view('get_total_campaigns', [creator_address])
        try:
            return int(result[0])
        except (IndexError, TypeError, ValueError) as e:
            raise LedgerError(f"Unexpected get_total_campaigns result: {result!r}") from e

    def get_settlement(self, tx_hash: str) -> Settlement:
        """Look up a transaction and summarize it as a settlement.

        Raises:
            NotFound: If the node does not know the transaction
        """
        tx = self._request('GET', f"/transactions/by_hash/{tx_hash}")
        settlement = Settlement(
            tx_hash=tx.get('hash', tx_hash),
            success=tx.get('success') is True,
            sender=tx.get('sender'),
            amount=extract_transfer_amount(tx),
            vm_status=tx.get('vm_status')
        )
        logger.debug(f"Settlement {tx_hash}: success={settlement.success} amount={settlement.amount}")
        return settlement


__all__ = [
    'AptosClient', 'Settlement', 'LedgerError', 'LedgerConnectionError',
    'extract_transfer_amount'
]
