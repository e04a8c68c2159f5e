"""
Contract Descriptors
Bytecode, gas budget and initializer encoding per logical contract
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Dict, List, Optional
from eth_abi import encode
from web3 import Web3
from loguru import logger

from blockchain.proxy_factory import FACTORY_GAS_LIMIT, FACTORY_NAME
from utils.exceptions import InputError
from .config import (
    ZERO_ADDRESS,
    PublishConfig,
    parse_address,
    parse_address_list,
    parse_optional_address,
    parse_uint32_list,
    split_csv,
)


def parse_bytecode(text: str, source: str) -> bytes:
    """Creation bytecode from hex text; empty or malformed input is an InputError"""
    text = (text or '').strip()
    if text.startswith('0x'):
        text = text[2:]
    try:
        code = bytes.fromhex(text)
    except ValueError as e:
        raise InputError(f"bytecode from {source} is not valid hex: {e}") from e
    if not code:
        raise InputError(f"bytecode from {source} is empty")
    return code


@lru_cache(maxsize=None)
def _read_artifact(path: str) -> bytes:
    with open(path, 'r') as f:
        return parse_bytecode(f.read(), path)


@dataclass(frozen=True)
class ContractDescriptor:
    """
    Everything the orchestrator needs to know about one contract

    key: logical name used on the command line and in the report
    name: contract name (also the artifact file stem)
    gas_limit: gas budget for the implementation creation
    init_signature: initializer signature, None for contracts deployed
        without a proxy
    build_args: turns the run configuration and owner into initializer
        arguments, raising InputError on bad input
    bytecode_hex: inline creation bytecode, bypassing the artifact file
    """
    key: str
    name: str
    gas_limit: int
    init_signature: Optional[str] = None
    build_args: Optional[Callable[[PublishConfig, str], List]] = None
    bytecode_hex: Optional[str] = None

    @property
    def proxied(self) -> bool:
        return self.init_signature is not None

    @property
    def init_types(self) -> List[str]:
        inner = self.init_signature[self.init_signature.index('(') + 1:-1]
        return [t.strip() for t in inner.split(',') if t.strip()]

    def bytecode(self, contracts_dir: str = "contracts/bin") -> bytes:
        """
        Creation bytecode, from the inline hex or <contracts_dir>/<name>.bin

        Raises:
            InputError: artifact missing or malformed
        """
        if self.bytecode_hex is not None:
            return parse_bytecode(self.bytecode_hex, f"inline {self.name} bytecode")

        path = os.path.join(contracts_dir, f"{self.name}.bin")
        if not os.path.exists(path):
            raise InputError(f"bytecode artifact not found: {path}", contract=self.name)
        return _read_artifact(os.path.abspath(path))

    def init_args(self, cfg: PublishConfig, owner: str) -> List:
        """Validate and collect initializer arguments (no chain interaction)"""
        if self.build_args is None:
            return []
        return self.build_args(cfg, owner)

    def encode_init(self, args: List) -> bytes:
        """
        Encode the initializer call

        Args:
            args: Values matching init_signature

        Returns:
            4-byte selector followed by ABI encoded arguments
        """
        if not self.proxied:
            raise InputError(f"{self.name} has no initializer", contract=self.name)

        selector = Web3.keccak(text=self.init_signature)[:4]
        try:
            params = encode(self.init_types, args)
        except Exception as e:
            raise InputError(f"encode {self.name} init: {e}", contract=self.name) from e
        return bytes(selector) + params


def to_bytes32(value: str, label: str) -> bytes:
    """Right-pad a short string into a bytes32 value"""
    raw = value.encode('utf-8')
    if len(raw) > 32:
        raise InputError(f"{label} longer than 32 bytes: {value}")
    return raw.ljust(32, b'\x00')


def check_uint(value: int, bits: int, label: str) -> int:
    if not 0 <= int(value) < 2 ** bits:
        raise InputError(f"{label} out of uint{bits} range: {value}")
    return int(value)


# Initializer argument builders

def _owner_only(cfg: PublishConfig, owner: str) -> List:
    return [owner]


def _contract_registry_args(cfg: PublishConfig, owner: str) -> List:
    identifiers = split_csv(cfg.registry_identifiers)
    if not identifiers:
        raise InputError("registry-identifiers is required for publish-one contractregistry")
    return [owner, [to_bytes32(i, "registry identifier") for i in identifiers]]


def _eth_faucet_args(cfg: PublishConfig, owner: str) -> List:
    return [owner, check_uint(cfg.faucet_amount, 256, "faucet-amount")]


def _fee_policy_args(cfg: PublishConfig, owner: str) -> List:
    return [owner, check_uint(cfg.fee_policy_default, 256, "fee-policy-default")]


def _giftable_token_args(cfg: PublishConfig, owner: str) -> List:
    return [
        cfg.token_name,
        cfg.token_symbol,
        check_uint(cfg.token_decimals, 8, "token-decimals"),
        owner,
        check_uint(cfg.token_expires_at, 256, "token-expires-at"),
    ]


def _oracle_quoter_args(cfg: PublishConfig, owner: str) -> List:
    if not cfg.base_currency.strip():
        raise InputError("base-currency is required for publish-one oraclequoter")
    return [owner, parse_address(cfg.base_currency, "base-currency")]


def _period_simple_args(cfg: PublishConfig, owner: str) -> List:
    return [owner, parse_optional_address(cfg.period_poker, owner, "period-poker")]


def _protocol_fee_controller_args(cfg: PublishConfig, owner: str) -> List:
    return [
        owner,
        check_uint(cfg.protocol_fee, 256, "protocol-fee"),
        parse_optional_address(cfg.protocol_recipient, owner, "protocol-recipient"),
    ]


def _splitter_args(cfg: PublishConfig, owner: str) -> List:
    accounts = parse_address_list(cfg.splitter_accounts, "splitter-accounts")
    allocations = parse_uint32_list(cfg.splitter_allocations, "splitter-allocations")
    if not accounts or len(accounts) != len(allocations):
        raise InputError(
            "splitter-accounts and splitter-allocations are required and must have equal length "
            f"(got {len(accounts)} accounts, {len(allocations)} allocations)"
        )
    return [owner, accounts, allocations]


def _token_index_args(cfg: PublishConfig, owner: str) -> List:
    tokens = parse_address_list(cfg.token_index_tokens, "token-index-tokens")
    symbols = split_csv(cfg.token_index_symbols)
    if tokens and symbols and len(tokens) != len(symbols):
        raise InputError(f"token-index lengths mismatch: {len(tokens)} != {len(symbols)}")
    return [owner, tokens, [to_bytes32(s, "token index symbol") for s in symbols]]


def _swap_pool_args(cfg: PublishConfig, owner: str) -> List:
    required = {
        'pool-fee-policy': cfg.pool_fee_policy,
        'pool-token-limiter': cfg.pool_token_limiter,
        'pool-protocol-fee-controller': cfg.pool_protocol_fee_controller,
        'pool-quoter': cfg.pool_quoter,
    }
    resolved = {}
    for label, value in required.items():
        if not (value or '').strip():
            raise InputError(f"{label} is required for publish-one swappool")
        resolved[label] = parse_address(value, label)

    kind = (cfg.pool_quoter_kind or '').strip().lower()
    if kind and kind not in ('relative', 'oracle'):
        raise InputError("pool-quoter-kind must be relative|oracle")
    logger.info(f"SwapPool quoter {resolved['pool-quoter']} ({kind or 'unspecified'})")

    return [
        cfg.pool_name,
        cfg.pool_symbol,
        check_uint(cfg.pool_decimals, 8, "pool-decimals"),
        owner,
        resolved['pool-fee-policy'],
        parse_optional_address(cfg.pool_fee_address, owner, "pool-fee-address"),
        parse_optional_address(cfg.pool_token_registry, ZERO_ADDRESS, "pool-token-registry"),
        resolved['pool-token-limiter'],
        resolved['pool-quoter'],
        bool(cfg.pool_fees_decoupled),
        resolved['pool-protocol-fee-controller'],
    ]


DESCRIPTORS: Dict[str, ContractDescriptor] = {
    d.key: d for d in [
        ContractDescriptor('erc1967factory', FACTORY_NAME, FACTORY_GAS_LIMIT),
        ContractDescriptor('decimalquoter', 'DecimalQuoter', 1_000_000),
        ContractDescriptor('accountsindex', 'AccountsIndex', 2_000_000,
                           'initialize(address)', _owner_only),
        ContractDescriptor('cat', 'CAT', 2_000_000,
                           'initialize(address)', _owner_only),
        ContractDescriptor('contractregistry', 'ContractRegistry', 2_000_000,
                           'initialize(address,bytes32[])', _contract_registry_args),
        ContractDescriptor('ethfaucet', 'EthFaucet', 2_000_000,
                           'initialize(address,uint256)', _eth_faucet_args),
        ContractDescriptor('feepolicy', 'FeePolicy', 1_000_000,
                           'initialize(address,uint256)', _fee_policy_args),
        ContractDescriptor('giftabletoken', 'GiftableToken', 2_000_000,
                           'initialize(string,string,uint8,address,uint256)', _giftable_token_args),
        ContractDescriptor('limiter', 'Limiter', 1_000_000,
                           'initialize(address)', _owner_only),
        ContractDescriptor('oraclequoter', 'OracleQuoter', 1_000_000,
                           'initialize(address,address)', _oracle_quoter_args),
        ContractDescriptor('periodsimple', 'PeriodSimple', 2_000_000,
                           'initialize(address,address)', _period_simple_args),
        ContractDescriptor('protocolfeecontroller', 'ProtocolFeeController', 1_000_000,
                           'initialize(address,uint256,address)', _protocol_fee_controller_args),
        ContractDescriptor('relativequoter', 'RelativeQuoter', 1_000_000,
                           'initialize(address)', _owner_only),
        ContractDescriptor('splitter', 'Splitter', 500_000,
                           'initialize(address,address[],uint32[])', _splitter_args),
        ContractDescriptor('tokenuniquesymbolindex', 'TokenUniqueSymbolIndex', 2_000_000,
                           'initialize(address,address[],bytes32[])', _token_index_args),
        ContractDescriptor('swappool', 'SwapPool', 5_000_000,
                           'initialize(string,string,uint8,address,address,address,address,address,address,bool,address)',
                           _swap_pool_args),
    ]
}

ALIASES = {
    'factory': 'erc1967factory',
    'token': 'giftabletoken',
    'pfc': 'protocolfeecontroller',
    'tokenindex': 'tokenuniquesymbolindex',
}


def get_descriptor(name: str, registry: Optional[Dict[str, ContractDescriptor]] = None) -> ContractDescriptor:
    """
    Look up a descriptor by logical name or alias

    Args:
        name: Logical contract name (case-insensitive)
        registry: Descriptor mapping (defaults to DESCRIPTORS)

    Returns:
        ContractDescriptor
    """
    registry = registry if registry is not None else DESCRIPTORS
    key = (name or '').strip().lower()
    key = ALIASES.get(key, key)
    if key not in registry:
        raise InputError(f"unsupported contract: {name}")
    return registry[key]
