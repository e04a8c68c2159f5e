"""
RPC Manager
Thin wrapper over a single JSON-RPC endpoint
Every transport failure surfaces as RPCError, never a silent default
"""

from typing import Dict, Optional, Union
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import TransactionNotFound
from loguru import logger

from .exceptions import RPCError


class RPCManager:
    """
    Chain RPC boundary used by the deployment engine

    Exposes only what deployment needs: account nonce, raw transaction
    broadcast, receipt lookup and deployed code lookup.
    """

    def __init__(self, rpc_url: str, w3: Optional[Web3] = None, request_timeout: int = 30):
        """
        Initialize RPC Manager

        Args:
            rpc_url: HTTP JSON-RPC endpoint
            w3: Pre-built Web3 instance (skips provider creation)
            request_timeout: Per-request HTTP timeout in seconds
        """
        self.rpc_url = rpc_url

        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={'timeout': request_timeout}))
        self.w3 = w3

        logger.info(f"RPC Manager initialized for {self._redacted_url()}")

    def _redacted_url(self) -> str:
        """Endpoint without path/query (API keys usually live there)"""
        if not self.rpc_url:
            return "<injected provider>"
        scheme, sep, rest = self.rpc_url.partition('://')
        host = rest.split('/', 1)[0]
        return f"{scheme}{sep}{host}"

    def _call(self, method: str, fn, *args):
        """Run one RPC call and translate failures"""
        try:
            return fn(*args)
        except TransactionNotFound:
            raise
        except Exception as e:
            logger.error(f"RPC {method} failed: {e}")
            raise RPCError(f"{method}: {e}") from e

    def chain_id(self) -> int:
        """Chain id reported by the endpoint"""
        return self._call('eth_chainId', lambda: self.w3.eth.chain_id)

    def get_nonce(self, address: str) -> int:
        """
        Get the account's next usable nonce

        Args:
            address: Account address

        Returns:
            Transaction count including pending transactions
        """
        return self._call(
            'eth_getTransactionCount',
            self.w3.eth.get_transaction_count,
            Web3.to_checksum_address(address),
            'pending'
        )

    def get_code(self, address: str) -> bytes:
        """
        Get deployed code at an address

        Args:
            address: Contract address

        Returns:
            Runtime bytecode (empty for accounts without code)
        """
        code = self._call('eth_getCode', self.w3.eth.get_code, Web3.to_checksum_address(address))
        return bytes(code)

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        """
        Broadcast a signed transaction

        Args:
            raw_transaction: Signed transaction bytes

        Returns:
            Transaction hash (0x-prefixed hex)
        """
        tx_hash = self._call('eth_sendRawTransaction', self.w3.eth.send_raw_transaction, raw_transaction)
        return '0x' + bytes(HexBytes(tx_hash)).hex()

    def get_receipt(self, tx_hash: Union[str, bytes]) -> Optional[Dict]:
        """
        Fetch a transaction receipt

        Args:
            tx_hash: Transaction hash

        Returns:
            Receipt mapping, or None while the transaction is not mined
        """
        try:
            return self._call('eth_getTransactionReceipt', self.w3.eth.get_transaction_receipt, tx_hash)
        except TransactionNotFound:
            return None

    def close(self):
        """Drop the provider; the manager must not be used afterwards"""
        self.w3 = None
        logger.debug("RPC Manager closed")

