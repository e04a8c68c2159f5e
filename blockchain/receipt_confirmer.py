"""
Receipt Confirmer
Constant-interval receipt polling bounded by a session deadline
"""

import asyncio
import time
from typing import Dict
from loguru import logger

from utils.exceptions import ConfirmationTimeoutError

POLL_INTERVAL_SECONDS = 2.0


class ReceiptConfirmer:
    """
    Waits for transaction inclusion

    Returns whatever receipt the chain produces; judging the status field
    is left to the caller.
    """

    def __init__(self, rpc, poll_interval: float = POLL_INTERVAL_SECONDS,
                 clock=time.monotonic, sleep=asyncio.sleep):
        """
        Initialize Receipt Confirmer

        Args:
            rpc: RPC boundary exposing get_receipt(tx_hash)
            poll_interval: Seconds between polls (no backoff)
            clock: Monotonic clock the deadline is expressed in
            sleep: Coroutine used to suspend between polls
        """
        self.rpc = rpc
        self.poll_interval = poll_interval
        self.clock = clock
        self.sleep = sleep

    async def wait_for_receipt(self, tx_hash: str, deadline: float) -> Dict:
        """
        Poll until the transaction is mined or the deadline passes

        Args:
            tx_hash: Transaction hash
            deadline: Absolute clock() value after which waiting stops

        Returns:
            Receipt mapping
        """
        if self.clock() >= deadline:
            raise ConfirmationTimeoutError("deadline already passed before polling", tx_hash=tx_hash)

        polls = 0
        while True:
            receipt = self.rpc.get_receipt(tx_hash)
            polls += 1
            if receipt is not None:
                logger.debug(f"Receipt for {tx_hash} after {polls} poll(s)")
                return receipt

            remaining = deadline - self.clock()
            if remaining <= 0:
                logger.error(f"Timed out waiting for {tx_hash} after {polls} poll(s)")
                raise ConfirmationTimeoutError("timed out waiting for receipt", tx_hash=tx_hash)

            await self.sleep(min(self.poll_interval, remaining))
