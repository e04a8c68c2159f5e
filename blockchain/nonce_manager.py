"""
Nonce Manager
Fetches the deployer nonce fresh before every send
"""

from typing import Optional
from loguru import logger


class NonceManager:
    """
    Nonce source for a single signing account

    Nothing is cached between sends: each call re-queries the pending
    transaction count so externally issued transactions are picked up.
    Concurrent writers on the same account are not guarded against.
    """

    def __init__(self, rpc, address: str):
        """
        Initialize Nonce Manager

        Args:
            rpc: RPC boundary exposing get_nonce(address)
            address: Account whose nonce is tracked
        """
        self.rpc = rpc
        self.address = address

        # Last nonce handed out, for gap detection only
        self.last_nonce: Optional[int] = None

    def get_nonce(self) -> int:
        """
        Get the nonce for the next transaction

        Returns:
            Pending transaction count of the account
        """
        nonce = self.rpc.get_nonce(self.address)

        if self.last_nonce is not None and nonce != self.last_nonce + 1:
            logger.warning(
                f"Nonce for {self.address} moved from {self.last_nonce} to {nonce} "
                f"(expected {self.last_nonce + 1}); another sender may be active"
            )

        self.last_nonce = nonce
        logger.debug(f"Allocated nonce: {nonce}")
        return nonce
