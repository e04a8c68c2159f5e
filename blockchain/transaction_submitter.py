"""
Transaction Submitter
Builds, signs and broadcasts EIP-1559 deployment transactions
"""

from dataclasses import dataclass
from typing import Dict, Optional
from web3 import Web3
from loguru import logger

from utils.exceptions import InputError, RPCError, SubmissionError
from .address_predictor import (
    ARACHNID_CREATE2_FACTORY,
    predict_create2_address,
    predict_create_address,
)
from .nonce_manager import NonceManager

DEFAULT_MAX_FEE_PER_GAS = 2_000_000_000
DEFAULT_MAX_PRIORITY_FEE_PER_GAS = 1_000_000_000


@dataclass(frozen=True)
class FeePolicy:
    """Fixed fee-market parameters applied to every transaction of a run"""
    max_fee_per_gas: int = DEFAULT_MAX_FEE_PER_GAS
    max_priority_fee_per_gas: int = DEFAULT_MAX_PRIORITY_FEE_PER_GAS

    def __post_init__(self):
        if self.max_fee_per_gas <= 0 or self.max_priority_fee_per_gas < 0:
            raise InputError(
                f"invalid fee policy: fee cap {self.max_fee_per_gas}, "
                f"tip cap {self.max_priority_fee_per_gas}"
            )
        if self.max_priority_fee_per_gas > self.max_fee_per_gas:
            raise InputError(
                f"gas tip cap {self.max_priority_fee_per_gas} exceeds "
                f"gas fee cap {self.max_fee_per_gas}"
            )

    def as_tx_fields(self) -> Dict[str, int]:
        return {
            'maxFeePerGas': self.max_fee_per_gas,
            'maxPriorityFeePerGas': self.max_priority_fee_per_gas,
        }


@dataclass(frozen=True)
class DeployResult:
    """Hash of a creation transaction and the address it will produce"""
    tx_hash: str
    contract_address: str


class TransactionSubmitter:
    """
    Sends deployment transactions for one signing identity

    One call issues exactly one transaction. There are no retries and no
    fee bumping at this layer.
    """

    def __init__(self, rpc, identity, fee_policy: FeePolicy, nonce_manager: Optional[NonceManager] = None):
        """
        Initialize Transaction Submitter

        Args:
            rpc: RPC boundary (get_nonce, send_raw_transaction)
            identity: SigningIdentity used for every signature
            fee_policy: Fee caps applied to every transaction
            nonce_manager: Nonce source (defaults to a fresh NonceManager)
        """
        self.rpc = rpc
        self.identity = identity
        self.fee_policy = fee_policy
        self.nonce_manager = nonce_manager or NonceManager(rpc, identity.address)

    @property
    def address(self) -> str:
        return self.identity.address

    def _build_tx(self, nonce: int, data: bytes, gas_limit: int, to: Optional[str] = None) -> Dict:
        """Assemble a type-2 transaction dict; no 'to' means contract creation"""
        tx = {
            'type': 2,
            'nonce': nonce,
            'gas': gas_limit,
            'value': 0,
            'data': bytes(data),
            **self.fee_policy.as_tx_fields(),
        }
        if to is not None:
            tx['to'] = Web3.to_checksum_address(to)
        return tx

    def _send(self, tx: Dict) -> str:
        """Sign and broadcast; every failure becomes SubmissionError"""
        try:
            signed_tx = self.identity.sign_transaction(tx)
        except Exception as e:
            logger.error(f"Error signing transaction: {e}")
            raise SubmissionError(f"sign tx: {e}") from e

        try:
            tx_hash = self.rpc.send_raw_transaction(signed_tx.raw_transaction)
        except RPCError as e:
            raise SubmissionError(f"send tx: {e.message}") from e
        except Exception as e:
            logger.error(f"Error sending transaction: {e}")
            raise SubmissionError(f"send tx: {e}") from e

        logger.info(f"Transaction sent: {tx_hash} (nonce {tx['nonce']})")
        return tx_hash

    def _next_nonce(self) -> int:
        try:
            return self.nonce_manager.get_nonce()
        except RPCError as e:
            raise SubmissionError(f"get nonce: {e.message}") from e

    def deploy_contract(self, bytecode: bytes, gas_limit: int) -> DeployResult:
        """
        Deploy bytecode as a plain contract creation

        Args:
            bytecode: Creation bytecode
            gas_limit: Gas budget for the creation

        Returns:
            DeployResult with the sender+nonce derived contract address
        """
        nonce = self._next_nonce()
        contract_address = predict_create_address(self.address, nonce)

        tx_hash = self._send(self._build_tx(nonce, bytecode, gas_limit))

        logger.debug(f"Contract creation {tx_hash} -> {contract_address}")
        return DeployResult(tx_hash=tx_hash, contract_address=contract_address)

    def invoke(self, destination: str, payload: bytes, gas_limit: int) -> str:
        """
        Call an existing contract

        Args:
            destination: Target contract address
            payload: Call data
            gas_limit: Gas budget for the call

        Returns:
            Transaction hash
        """
        nonce = self._next_nonce()
        return self._send(self._build_tx(nonce, payload, gas_limit, to=destination))

    def deploy_deterministic(self, salt: bytes, init_code: bytes, gas_limit: int) -> DeployResult:
        """
        Deploy through the deterministic deployment proxy (CREATE2)

        Args:
            salt: 32-byte salt
            init_code: Creation bytecode
            gas_limit: Gas budget for the proxied creation

        Returns:
            DeployResult with the CREATE2 predicted address
        """
        contract_address = predict_create2_address(ARACHNID_CREATE2_FACTORY, salt, init_code)
        tx_hash = self.invoke(ARACHNID_CREATE2_FACTORY, bytes(salt) + bytes(init_code), gas_limit)

        logger.debug(f"Deterministic deployment {tx_hash} -> {contract_address}")
        return DeployResult(tx_hash=tx_hash, contract_address=contract_address)
