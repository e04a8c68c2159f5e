"""
Proxy Deployment Orchestrator
Factory resolution, implementation deployment and atomic proxy creation
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional
from loguru import logger

from blockchain.address_predictor import ARACHNID_CREATE2_FACTORY, derive_salt, predict_create2_address
from blockchain.proxy_factory import (
    FACTORY_GAS_LIMIT,
    FACTORY_NAME,
    PROXY_GAS_LIMIT,
    encode_deploy_and_call,
    proxy_address_from_logs,
)
from utils.exceptions import (
    CodeCheckError,
    DeploymentRevertedError,
    InputError,
    MissingEventError,
    PublishError,
)
from .config import parse_address


class DeploymentStep(str, Enum):
    """Progress of one proxied deployment"""
    RESOLVING_FACTORY = 'resolving_factory'
    DEPLOYING_IMPLEMENTATION = 'deploying_implementation'
    AWAITING_IMPLEMENTATION_RECEIPT = 'awaiting_implementation_receipt'
    ENCODING_INIT = 'encoding_init'
    DEPLOYING_PROXY = 'deploying_proxy'
    AWAITING_PROXY_RECEIPT = 'awaiting_proxy_receipt'
    EXTRACTING_PROXY_ADDRESS = 'extracting_proxy_address'
    DONE = 'done'
    FAILED = 'failed'


@dataclass(frozen=True)
class DeployedPair:
    """Terminal artifact of a proxied deployment"""
    implementation_address: str
    proxy_address: str
    factory_address: str


def receipt_succeeded(receipt: Dict) -> bool:
    return int(receipt.get('status', 0)) == 1


class ProxyDeployer:
    """
    Runs the two-step implementation + proxy protocol

    Every transaction is issued sequentially by one submitter; the only
    waits are receipt polls bounded by the session deadline.
    """

    def __init__(self, rpc, submitter, confirmer, deadline: float,
                 factory_name: str = FACTORY_NAME,
                 factory_gas_limit: int = FACTORY_GAS_LIMIT,
                 proxy_gas_limit: int = PROXY_GAS_LIMIT):
        """
        Initialize Proxy Deployer

        Args:
            rpc: RPC boundary (get_code)
            submitter: TransactionSubmitter for the signing identity
            confirmer: ReceiptConfirmer
            deadline: Session deadline on the confirmer's clock
            factory_name: Canonical factory name used for salt derivation
            factory_gas_limit: Gas budget for the factory deployment
            proxy_gas_limit: Gas budget for deployAndCall
        """
        self.rpc = rpc
        self.submitter = submitter
        self.confirmer = confirmer
        self.deadline = deadline
        self.factory_name = factory_name
        self.factory_gas_limit = factory_gas_limit
        self.proxy_gas_limit = proxy_gas_limit

        self.step: Optional[DeploymentStep] = None

        # Transactions sent in this session, in order
        self.sent_transactions = []

    def _enter(self, step: DeploymentStep):
        self.step = step
        logger.debug(f"Step: {step.value}")

    def _fail(self, error: PublishError, contract: str, implementation_address: Optional[str] = None):
        """Attach step/contract context and mark the run failed"""
        if error.step is None and self.step is not None:
            error.step = self.step.value
        if error.contract is None:
            error.contract = contract
        if error.implementation_address is None:
            error.implementation_address = implementation_address
        self.step = DeploymentStep.FAILED
        logger.error(f"Deployment failed: {error}")
        return error

    def _record(self, kind: str, tx_hash: str):
        self.sent_transactions.append((kind, tx_hash))

    async def _confirm(self, tx_hash: str, what: str, contract: str) -> Dict:
        """Wait for a receipt and reject failed status"""
        receipt = await self.confirmer.wait_for_receipt(tx_hash, self.deadline)
        if not receipt_succeeded(receipt):
            raise DeploymentRevertedError(f"{what} deployment failed", contract=contract, tx_hash=tx_hash)
        return receipt

    def has_code(self, address: str) -> bool:
        return len(self.rpc.get_code(address)) > 0

    async def ensure_factory(self, factory_bytecode: Optional[bytes],
                             factory_address: Optional[str] = None,
                             salt_suffix: str = "") -> str:
        """
        Resolve the proxy factory, deploying it deterministically if needed

        Args:
            factory_bytecode: ERC1967Factory creation bytecode (unused
                when factory_address is given)
            factory_address: Explicit factory address (must hold code)
            salt_suffix: Optional suffix for the factory salt

        Returns:
            Factory address
        """
        self._enter(DeploymentStep.RESOLVING_FACTORY)
        try:
            if factory_address:
                address = parse_address(factory_address, "factory address")
                if not self.has_code(address):
                    raise CodeCheckError(f"factory address {address} has no code", address=address)
                logger.info(f"Using factory {address}")
                return address

            salt = derive_salt(self.submitter.address, self.factory_name, salt_suffix)
            predicted = predict_create2_address(ARACHNID_CREATE2_FACTORY, salt, factory_bytecode)
            if self.has_code(predicted):
                logger.info(f"Factory already deployed at {predicted}")
                return predicted

            if not self.has_code(ARACHNID_CREATE2_FACTORY):
                raise CodeCheckError(
                    "deterministic deployment proxy not present on this chain",
                    address=ARACHNID_CREATE2_FACTORY
                )

            logger.info(f"Deploying {self.factory_name} deterministically to {predicted}")
            result = self.submitter.deploy_deterministic(salt, factory_bytecode, self.factory_gas_limit)
            self._record('factory', result.tx_hash)
            await self._confirm(result.tx_hash, "deterministic factory", self.factory_name)

            # A call into the proxy can succeed without creating anything
            if not self.has_code(result.contract_address):
                raise CodeCheckError(
                    "no code at predicted factory address after deployment",
                    tx_hash=result.tx_hash,
                    address=result.contract_address
                )

            logger.success(f"{self.factory_name} deployed at {result.contract_address}")
            return result.contract_address
        except PublishError as e:
            raise self._fail(e, self.factory_name)

    async def deploy_plain(self, name: str, bytecode: bytes, gas_limit: int) -> str:
        """
        Deploy a contract without a proxy

        Args:
            name: Contract name for logs and errors
            bytecode: Creation bytecode
            gas_limit: Gas budget

        Returns:
            Deployed contract address
        """
        self._enter(DeploymentStep.DEPLOYING_IMPLEMENTATION)
        try:
            result = self.submitter.deploy_contract(bytecode, gas_limit)
            self._record('implementation', result.tx_hash)

            self._enter(DeploymentStep.AWAITING_IMPLEMENTATION_RECEIPT)
            await self._confirm(result.tx_hash, f"{name} implementation", name)
        except PublishError as e:
            raise self._fail(e, name)

        logger.success(f"{name} implementation deployed at {result.contract_address}")
        return result.contract_address

    async def deploy_proxied(self, factory_address: str, admin: str, name: str,
                             bytecode: bytes, gas_limit: int,
                             encode_init: Callable[[], bytes]) -> DeployedPair:
        """
        Deploy an implementation, then a proxy initialized in the same call

        Args:
            factory_address: ERC1967Factory address
            admin: Proxy admin
            name: Contract name for logs and errors
            bytecode: Implementation creation bytecode
            gas_limit: Implementation gas budget
            encode_init: Produces the initializer call data

        Returns:
            DeployedPair
        """
        implementation = await self.deploy_plain(name, bytecode, gas_limit)

        try:
            self._enter(DeploymentStep.ENCODING_INIT)
            try:
                init_data = encode_init()
            except PublishError:
                raise
            except Exception as e:
                raise InputError(f"encode {name} init: {e}") from e

            self._enter(DeploymentStep.DEPLOYING_PROXY)
            calldata = encode_deploy_and_call(implementation, admin, init_data)
            tx_hash = self.submitter.invoke(factory_address, calldata, self.proxy_gas_limit)
            self._record('proxy', tx_hash)

            self._enter(DeploymentStep.AWAITING_PROXY_RECEIPT)
            receipt = await self._confirm(tx_hash, f"{name} proxy", name)

            self._enter(DeploymentStep.EXTRACTING_PROXY_ADDRESS)
            proxy = proxy_address_from_logs(receipt.get('logs') or [])
            if proxy is None:
                raise MissingEventError(
                    "Deployed event not found in receipt logs",
                    tx_hash=tx_hash,
                    address=factory_address
                )
        except PublishError as e:
            raise self._fail(e, name, implementation_address=implementation)

        self._enter(DeploymentStep.DONE)
        logger.success(f"{name} proxy deployed at {proxy} (implementation {implementation})")
        return DeployedPair(
            implementation_address=implementation,
            proxy_address=proxy,
            factory_address=factory_address
        )
