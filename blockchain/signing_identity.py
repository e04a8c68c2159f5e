"""
Signing Identity
Single deployer key bound to one chain
"""

from typing import Dict, Optional
from eth_account import Account
from web3 import Web3
from loguru import logger

from utils.exceptions import InputError


class SigningIdentity:
    """
    Private key, derived address and chain id used to sign every
    transaction of a deployment run. Immutable once created.
    """

    __slots__ = ('_account', 'address', 'chain_id')

    def __init__(self, private_key: str, chain_id: int, expected_address: Optional[str] = None):
        """
        Initialize signing identity

        Args:
            private_key: Hex private key (with or without 0x)
            chain_id: Chain id embedded in every signature
            expected_address: Optional public address the key must match
        """
        if chain_id <= 0:
            raise InputError(f"chain id must be positive, got {chain_id}")

        key = (private_key or '').strip()
        if not key.startswith('0x'):
            key = '0x' + key

        try:
            account = Account.from_key(key)
        except Exception as e:
            raise InputError(f"parse private key: {e}") from e

        object.__setattr__(self, '_account', account)
        object.__setattr__(self, 'address', account.address)
        object.__setattr__(self, 'chain_id', int(chain_id))

        if expected_address:
            if not Web3.is_address(expected_address):
                raise InputError(f"invalid address: {expected_address}")
            if Web3.to_checksum_address(expected_address) != self.address:
                raise InputError(
                    f"public-address {Web3.to_checksum_address(expected_address)} "
                    f"does not match private key address {self.address}"
                )

        logger.info(f"Signing identity: {self.address} (chain {self.chain_id})")

    def __setattr__(self, name, value):
        raise AttributeError("SigningIdentity is immutable")

    def __repr__(self) -> str:
        return f"SigningIdentity(address={self.address}, chain_id={self.chain_id})"

    def sign_transaction(self, transaction: Dict):
        """
        Sign a transaction dict

        Args:
            transaction: Transaction fields (chainId is filled in)

        Returns:
            Signed transaction (raw_transaction, hash)
        """
        tx = dict(transaction)
        tx['chainId'] = self.chain_id
        return self._account.sign_transaction(tx)
