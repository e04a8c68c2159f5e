"""
Proxy Factory
ERC1967Factory call encoding and event decoding
"""

from typing import Dict, Iterable, Optional
from eth_abi import encode
from hexbytes import HexBytes
from web3 import Web3

FACTORY_NAME = "ERC1967Factory"
FACTORY_GAS_LIMIT = 1_000_000
PROXY_GAS_LIMIT = 500_000

DEPLOY_AND_CALL_SIGNATURE = "deployAndCall(address,address,bytes)"
DEPLOYED_EVENT_SIGNATURE = "Deployed(address,address,address)"

DEPLOY_AND_CALL_SELECTOR = Web3.keccak(text=DEPLOY_AND_CALL_SIGNATURE)[:4]
DEPLOYED_EVENT_TOPIC = Web3.keccak(text=DEPLOYED_EVENT_SIGNATURE)


def encode_deploy_and_call(implementation: str, admin: str, init_data: bytes) -> bytes:
    """
    Encode the factory's create-and-initialize call

    Args:
        implementation: Implementation contract address
        admin: Proxy admin address
        init_data: Initializer call data executed by the new proxy

    Returns:
        Call data for deployAndCall
    """
    params = encode(
        ['address', 'address', 'bytes'],
        [
            Web3.to_checksum_address(implementation),
            Web3.to_checksum_address(admin),
            bytes(init_data)
        ]
    )
    return bytes(DEPLOY_AND_CALL_SELECTOR) + params


def _topic_address(topic) -> str:
    return Web3.to_checksum_address(HexBytes(topic)[-20:])


def decode_deployed_event(log: Dict) -> Optional[Dict[str, str]]:
    """
    Decode a Deployed(proxy, implementation, admin) log entry

    Returns:
        Mapping of the three indexed addresses, or None if the log is a
        different event
    """
    topics = log.get('topics') or []
    if len(topics) != 4 or HexBytes(topics[0]) != DEPLOYED_EVENT_TOPIC:
        return None

    return {
        'proxy': _topic_address(topics[1]),
        'implementation': _topic_address(topics[2]),
        'admin': _topic_address(topics[3]),
    }


def proxy_address_from_logs(logs: Iterable[Dict]) -> Optional[str]:
    """First proxy address announced by a Deployed event, if any"""
    for log in logs:
        event = decode_deployed_event(log)
        if event is not None:
            return event['proxy']
    return None
