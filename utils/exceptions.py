"""
Publisher Exceptions
Error taxonomy for the deployment engine
"""

from typing import Optional


class PublishError(Exception):
    """
    Base class for every fatal deployment error

    Carries enough context (contract, step, hash, address) to diagnose a
    failed run from the single error line printed by the CLI.
    """

    def __init__(
        self,
        message: str,
        contract: Optional[str] = None,
        step: Optional[str] = None,
        tx_hash: Optional[str] = None,
        address: Optional[str] = None,
        implementation_address: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.contract = contract
        self.step = step
        self.tx_hash = tx_hash
        self.address = address
        self.implementation_address = implementation_address

    def __str__(self) -> str:
        parts = []
        if self.contract:
            parts.append(f"contract={self.contract}")
        if self.step:
            parts.append(f"step={self.step}")
        if self.tx_hash:
            parts.append(f"tx={self.tx_hash}")
        if self.address:
            parts.append(f"address={self.address}")
        if self.implementation_address:
            parts.append(f"implementation={self.implementation_address}")

        if not parts:
            return self.message
        return f"{self.message} ({', '.join(parts)})"


class InputError(PublishError, ValueError):
    """Caller input is malformed; raised before any chain interaction"""


class RPCError(PublishError):
    """Transport or serialization failure at the RPC boundary"""


class SubmissionError(PublishError):
    """Signing or broadcast of a transaction failed"""


class ConfirmationTimeoutError(PublishError, TimeoutError):
    """Receipt not observed before the session deadline"""


class DeploymentRevertedError(PublishError):
    """Receipt observed with a failed status"""


class MissingEventError(PublishError):
    """Successful receipt without the expected factory event"""


class CodeCheckError(PublishError):
    """Address expected to hold a contract has no code"""
