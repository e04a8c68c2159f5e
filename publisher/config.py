"""
Publisher Configuration
Environment (.env) defaults overridden by command-line flags
"""

import argparse
import os
from dataclasses import dataclass, fields
from typing import List, Optional, Sequence
from web3 import Web3
from dotenv import find_dotenv, load_dotenv

from utils.exceptions import InputError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@dataclass
class PublishConfig:
    """All settings of a publish-one run"""
    contract: str = ""
    rpc_url: str = ""
    chain_id: int = 0
    private_key: str = ""
    public_address: str = ""
    owner: str = ""
    admin: str = ""
    gas_fee_cap: int = 2_000_000_000
    gas_tip_cap: int = 1_000_000_000
    timeout_seconds: int = 600
    factory_address: str = ""
    factory_salt_suffix: str = ""
    contracts_dir: str = "contracts/bin"

    # SwapPool
    base_currency: str = ""
    pool_quoter: str = ""
    pool_quoter_kind: str = "relative"
    pool_token_registry: str = ""
    pool_fee_address: str = ""
    pool_name: str = "Sarafu Pool"
    pool_symbol: str = "SRFp"
    pool_decimals: int = 6
    pool_fees_decoupled: bool = False
    pool_fee_policy: str = ""
    pool_token_limiter: str = ""
    pool_protocol_fee_controller: str = ""

    # GiftableToken
    token_name: str = "Sarafu"
    token_symbol: str = "SRF"
    token_decimals: int = 6
    token_expires_at: int = 0

    fee_policy_default: int = 5000
    protocol_fee: int = 1000
    protocol_recipient: str = ""
    faucet_amount: int = 0
    period_poker: str = ""
    registry_identifiers: str = ""
    token_index_tokens: str = ""
    token_index_symbols: str = ""
    splitter_accounts: str = ""
    splitter_allocations: str = ""

    verbose: bool = False

    def validate(self):
        """Check the settings every run needs"""
        if not self.rpc_url or not self.chain_id or not self.private_key:
            raise InputError("rpc-url, chain-id and private-key are required")
        if not self.contract.strip():
            raise InputError("--contract is required for publish-one")
        if self.timeout_seconds <= 0:
            raise InputError(f"timeout-seconds must be positive, got {self.timeout_seconds}")


# Environment variable backing each field (flag name is the field name with dashes)
ENV_VARS = {
    'contract': 'CONTRACT',
    'rpc_url': 'RPC_URL',
    'chain_id': 'CHAIN_ID',
    'private_key': 'PRIVATE_KEY',
    'public_address': 'PUBLIC_ADDRESS',
    'owner': 'OWNER',
    'admin': 'ADMIN',
    'gas_fee_cap': 'GAS_FEE_CAP',
    'gas_tip_cap': 'GAS_TIP_CAP',
    'timeout_seconds': 'TIMEOUT_SECONDS',
    'factory_address': 'FACTORY_ADDRESS',
    'factory_salt_suffix': 'FACTORY_SALT_SUFFIX',
    'contracts_dir': 'CONTRACTS_DIR',
    'base_currency': 'BASE_CURRENCY',
    'pool_quoter': 'POOL_QUOTER',
    'pool_quoter_kind': 'POOL_QUOTER_KIND',
    'pool_token_registry': 'POOL_TOKEN_REGISTRY',
    'pool_fee_address': 'POOL_FEE_ADDRESS',
    'pool_name': 'POOL_NAME',
    'pool_symbol': 'POOL_SYMBOL',
    'pool_decimals': 'POOL_DECIMALS',
    'pool_fee_policy': 'POOL_FEE_POLICY',
    'pool_token_limiter': 'POOL_TOKEN_LIMITER',
    'pool_protocol_fee_controller': 'POOL_PROTOCOL_FEE_CONTROLLER',
    'token_name': 'TOKEN_NAME',
    'token_symbol': 'TOKEN_SYMBOL',
    'token_decimals': 'TOKEN_DECIMALS',
    'token_expires_at': 'TOKEN_EXPIRES_AT',
    'fee_policy_default': 'FEE_POLICY_DEFAULT',
    'protocol_fee': 'PROTOCOL_FEE',
    'protocol_recipient': 'PROTOCOL_RECIPIENT',
    'faucet_amount': 'FAUCET_AMOUNT',
    'period_poker': 'PERIOD_POKER',
    'registry_identifiers': 'REGISTRY_IDENTIFIERS',
    'token_index_tokens': 'TOKEN_INDEX_TOKENS',
    'token_index_symbols': 'TOKEN_INDEX_SYMBOLS',
    'splitter_accounts': 'SPLITTER_ACCOUNTS',
    'splitter_allocations': 'SPLITTER_ALLOCATIONS',
}

HELP = {
    'contract': 'single contract to deploy',
    'rpc_url': 'RPC URL',
    'chain_id': 'chain id',
    'private_key': 'private key hex',
    'public_address': 'public address for validation',
    'owner': 'owner address (default deployer)',
    'admin': 'proxy admin (default owner)',
    'gas_fee_cap': 'EIP-1559 fee cap (wei)',
    'gas_tip_cap': 'EIP-1559 tip cap (wei)',
    'timeout_seconds': 'session timeout in seconds',
    'factory_address': 'existing ERC1967Factory address',
    'factory_salt_suffix': 'optional suffix appended to the factory name before salt derivation',
    'contracts_dir': 'directory holding <Name>.bin bytecode artifacts',
    'base_currency': 'base currency for OracleQuoter',
    'pool_quoter': 'quoter proxy address for SwapPool',
    'pool_quoter_kind': 'relative|oracle (informational)',
    'pool_fees_decoupled': 'pool fees decoupled',
    'pool_fee_policy': 'existing FeePolicy proxy for swappool',
    'pool_token_limiter': 'existing Limiter proxy for swappool',
    'pool_protocol_fee_controller': 'existing ProtocolFeeController proxy for swappool',
    'registry_identifiers': 'comma-separated identifiers',
    'token_index_tokens': 'comma-separated token addresses',
    'token_index_symbols': 'comma-separated symbols',
    'splitter_accounts': 'comma-separated splitter accounts',
    'splitter_allocations': 'comma-separated splitter allocations',
    'verbose': 'log progress to stderr',
}


def env_or(key: str, fallback: str) -> str:
    value = os.getenv(key, '').strip()
    return value if value else fallback


def env_int(key: str, fallback: int) -> int:
    value = os.getenv(key, '').strip()
    if not value:
        return fallback
    try:
        return int(value)
    except ValueError:
        return fallback


def defaults_from_env() -> PublishConfig:
    """PublishConfig populated from environment variables"""
    cfg = PublishConfig()
    for field in fields(PublishConfig):
        env_key = ENV_VARS.get(field.name)
        if env_key is None:
            continue
        current = getattr(cfg, field.name)
        if isinstance(current, bool):
            continue
        if isinstance(current, int):
            setattr(cfg, field.name, env_int(env_key, current))
        else:
            setattr(cfg, field.name, env_or(env_key, current))
    return cfg


class FlagParser(argparse.ArgumentParser):
    """ArgumentParser that raises InputError instead of exiting"""

    def error(self, message):
        raise InputError(message)


def build_parser(defaults: PublishConfig) -> argparse.ArgumentParser:
    """Flag parser for the publish-one subcommand"""
    parser = FlagParser(
        prog='proxy-publisher publish-one',
        description='Deploy one contract (behind an ERC1967 proxy where applicable)'
    )
    for field in fields(PublishConfig):
        flag = '--' + field.name.replace('_', '-')
        default = getattr(defaults, field.name)
        help_text = HELP.get(field.name, field.name.replace('_', ' '))
        if isinstance(default, bool):
            parser.add_argument(flag, dest=field.name, action='store_true', default=default, help=help_text)
        elif isinstance(default, int):
            parser.add_argument(flag, dest=field.name, type=int, default=default, help=help_text)
        else:
            parser.add_argument(flag, dest=field.name, default=default, help=help_text)
    return parser


def parse_config(argv: Sequence[str]) -> PublishConfig:
    """
    Build the run configuration

    Args:
        argv: Arguments after the publish-one subcommand

    Returns:
        Validated PublishConfig
    """
    load_dotenv(find_dotenv(usecwd=True))
    parser = build_parser(defaults_from_env())
    namespace = parser.parse_args(list(argv))

    cfg = PublishConfig(**vars(namespace))
    cfg.validate()
    return cfg


def split_csv(value: Optional[str]) -> List[str]:
    """Split a comma-separated value, dropping blanks"""
    value = (value or '').strip()
    if not value:
        return []
    return [part.strip() for part in value.split(',') if part.strip()]


def parse_address(value: Optional[str], label: str = "address") -> str:
    """Checksummed address or InputError"""
    value = (value or '').strip()
    if not Web3.is_address(value):
        raise InputError(f"invalid {label}: {value or '<empty>'}")
    return Web3.to_checksum_address(value)


def parse_optional_address(value: Optional[str], fallback: str, label: str = "address") -> str:
    """Parse value if set, otherwise return fallback"""
    if not (value or '').strip():
        return fallback
    return parse_address(value, label)


def parse_address_list(value: Optional[str], label: str = "address") -> List[str]:
    return [parse_address(part, f"{label}[{i}]") for i, part in enumerate(split_csv(value))]


def parse_uint32_list(value: Optional[str], label: str = "allocation") -> List[int]:
    out = []
    for i, part in enumerate(split_csv(value)):
        try:
            number = int(part, 10)
        except ValueError:
            raise InputError(f"{label}[{i}]: not an integer: {part}") from None
        if not 0 <= number < 2 ** 32:
            raise InputError(f"{label}[{i}]: out of uint32 range: {part}")
        out.append(number)
    return out
