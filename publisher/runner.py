"""
Publish One
Deploys a single logical contract and builds the report
"""

import time
from typing import Dict, Optional
from loguru import logger

from blockchain.receipt_confirmer import POLL_INTERVAL_SECONDS, ReceiptConfirmer
from blockchain.signing_identity import SigningIdentity
from blockchain.transaction_submitter import FeePolicy, TransactionSubmitter
from utils.exceptions import InputError
from utils.rpc_manager import RPCManager
from .config import PublishConfig, parse_optional_address
from .descriptors import ContractDescriptor, get_descriptor
from .orchestrator import ProxyDeployer
from .report import PublishReport

FACTORY_KEY = 'erc1967factory'


async def publish_one(
    cfg: PublishConfig,
    rpc=None,
    registry: Optional[Dict[str, ContractDescriptor]] = None,
    poll_interval: float = POLL_INTERVAL_SECONDS,
    clock=time.monotonic
) -> PublishReport:
    """
    Run the publish-one protocol for cfg.contract

    All input validation (contract name, key, addresses, initializer
    arguments, bytecode artifacts) happens before the first RPC call. The
    endpoint must report the configured chain id before anything is sent.

    Args:
        cfg: Run configuration
        rpc: RPC boundary (defaults to an RPCManager on cfg.rpc_url)
        registry: Descriptor mapping (defaults to the built-in registry)
        poll_interval: Receipt poll interval in seconds
        clock: Monotonic clock for the session deadline

    Returns:
        PublishReport
    """
    descriptor = get_descriptor(cfg.contract, registry)
    identity = SigningIdentity(cfg.private_key, cfg.chain_id, cfg.public_address or None)
    fee_policy = FeePolicy(cfg.gas_fee_cap, cfg.gas_tip_cap)

    owner = parse_optional_address(cfg.owner, identity.address, "owner")
    admin = parse_optional_address(cfg.admin, owner, "admin")
    factory_address = parse_optional_address(cfg.factory_address, "", "factory-address")

    init_args = descriptor.init_args(cfg, owner) if descriptor.proxied else []
    bytecode = descriptor.bytecode(cfg.contracts_dir)

    needs_factory = descriptor.proxied or descriptor.key == FACTORY_KEY
    factory_bytecode = None
    if needs_factory and not factory_address:
        factory_bytecode = get_descriptor(FACTORY_KEY, registry).bytecode(cfg.contracts_dir)

    logger.info(f"Publishing {descriptor.name} (owner {owner}, admin {admin})")

    owns_rpc = rpc is None
    if owns_rpc:
        rpc = RPCManager(cfg.rpc_url)

    try:
        endpoint_chain_id = rpc.chain_id()
        if endpoint_chain_id != identity.chain_id:
            raise InputError(
                f"chain-id {identity.chain_id} does not match endpoint chain id {endpoint_chain_id}"
            )

        deadline = clock() + cfg.timeout_seconds
        submitter = TransactionSubmitter(rpc, identity, fee_policy)
        confirmer = ReceiptConfirmer(rpc, poll_interval=poll_interval, clock=clock)
        deployer = ProxyDeployer(rpc, submitter, confirmer, deadline)

        report = PublishReport()

        if descriptor.key == FACTORY_KEY:
            report.factory = await deployer.ensure_factory(
                factory_bytecode, factory_address, cfg.factory_salt_suffix
            )
        elif not descriptor.proxied:
            report.decimal_quoter = await deployer.deploy_plain(
                descriptor.name, bytecode, descriptor.gas_limit
            )
        else:
            factory = await deployer.ensure_factory(
                factory_bytecode, factory_address, cfg.factory_salt_suffix
            )
            pair = await deployer.deploy_proxied(
                factory,
                admin,
                descriptor.name,
                bytecode,
                descriptor.gas_limit,
                lambda: descriptor.encode_init(init_args)
            )
            report.factory = pair.factory_address
            report.implementations[descriptor.key] = pair.implementation_address
            report.proxies[descriptor.key] = pair.proxy_address

        logger.success(f"Published {descriptor.name} ({len(deployer.sent_transactions)} transaction(s))")
        return report
    finally:
        if owns_rpc:
            rpc.close()
