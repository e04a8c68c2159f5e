"""
Address Predictor
Deterministic contract address derivation (CREATE and CREATE2)
"""

import rlp
from eth_utils import keccak, to_bytes, to_canonical_address, to_checksum_address

# Nick's deterministic deployment proxy, same address on every EVM chain
# Calldata: salt (32 bytes) ++ init code
ARACHNID_CREATE2_FACTORY = "0x4e59b44847b379578588920cA78FbF26c0B4956C"

SALT_SEPARATOR = ":"


def predict_create2_address(factory_address: str, salt: bytes, init_code: bytes) -> str:
    """
    Predict the address a CREATE2 factory assigns

    Formula: keccak256(0xff ++ factory ++ salt ++ keccak256(init_code))[12:]

    Args:
        factory_address: Deploying factory address
        salt: 32-byte salt
        init_code: Contract creation bytecode

    Returns:
        Checksummed contract address
    """
    salt = to_bytes(salt)
    if len(salt) != 32:
        raise ValueError(f"salt must be 32 bytes, got {len(salt)}")

    preimage = (
        b'\xff'
        + to_canonical_address(factory_address)
        + salt
        + keccak(to_bytes(init_code))
    )
    return to_checksum_address(keccak(preimage)[12:])


def predict_create_address(sender: str, nonce: int) -> str:
    """
    Predict the address of a plain contract creation

    Args:
        sender: Deploying account
        nonce: Nonce of the creation transaction

    Returns:
        Checksummed contract address
    """
    if nonce < 0:
        raise ValueError(f"nonce must be non-negative, got {nonce}")

    encoded = rlp.encode([to_canonical_address(sender), nonce])
    return to_checksum_address(keccak(encoded)[12:])


def salt_name(name: str, suffix: str = "") -> str:
    """Factory name with the optional salt suffix appended"""
    suffix = (suffix or "").strip()
    if suffix:
        return f"{name}{SALT_SEPARATOR}{suffix}"
    return name


def derive_salt(deployer_address: str, name: str, suffix: str = "") -> bytes:
    """
    Derive the CREATE2 salt for a named artifact

    The same deployer, name and suffix always give the same salt, which in
    turn gives the same predicted address on re-runs.

    Args:
        deployer_address: Account that owns the deployment
        name: Logical artifact name (e.g. ERC1967Factory)
        suffix: Optional discriminator, appended as "name:suffix"

    Returns:
        32-byte salt
    """
    return keccak(to_canonical_address(deployer_address) + salt_name(name, suffix).encode('utf-8'))
