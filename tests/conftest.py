"""
Shared fixtures
In-memory chain that executes signed deployment transactions
"""

import dataclasses

import pytest
import rlp
from eth_abi import decode
from eth_account import Account
from eth_utils import keccak, to_checksum_address
from web3 import Web3

from blockchain.address_predictor import (
    ARACHNID_CREATE2_FACTORY,
    predict_create2_address,
    predict_create_address,
)
from blockchain.proxy_factory import DEPLOY_AND_CALL_SELECTOR, DEPLOYED_EVENT_TOPIC
from publisher.config import PublishConfig
from publisher.descriptors import DESCRIPTORS
from utils.exceptions import RPCError

# Test account and the address its key derives
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcaf784d7bf4f2ff80"
DEPLOYER = "0x500d75F1329cf98352c32Cf238c2192ca78faFFE"
CHAIN_ID = 31337

FACTORY_BYTECODE = "0x6080604052348015600f57600080fd5b50"
IMPLEMENTATION_BYTECODE = "0x60806040523480156010576000"


def _pad_topic(address: str) -> bytes:
    return bytes(12) + bytes.fromhex(address[2:])


class FakeChain:
    """
    Minimal chain stub for the RPC boundary

    Decodes signed type-2 transactions, enforces nonce ordering, and
    simulates plain creation, deterministic-proxy creation and
    ERC1967Factory.deployAndCall.
    """

    def __init__(self):
        self.nonces = {}
        self.code = {}
        self.factories = set()
        self.receipts = {}
        self.transactions = []
        self.calls = []
        self.chain = CHAIN_ID

        # Deterministic deployment proxy is predeployed
        self.code[to_checksum_address(ARACHNID_CREATE2_FACTORY)] = b'\x01'

        # Knobs
        self.create2_executes = True
        self.receipt_delay = 0
        self.revert_kinds = set()
        self.emit_deployed_event = True
        self.broadcast_error = None

    def add_factory(self, address: str):
        address = to_checksum_address(address)
        self.code[address] = b'\x01'
        self.factories.add(address)

    def kinds(self):
        return [tx['kind'] for tx in self.transactions]

    # RPC boundary

    def chain_id(self):
        self.calls.append('chain_id')
        return self.chain

    def get_nonce(self, address):
        self.calls.append('get_nonce')
        return self.nonces.get(to_checksum_address(address), 0)

    def get_code(self, address):
        self.calls.append('get_code')
        return self.code.get(to_checksum_address(address), b'')

    def send_raw_transaction(self, raw):
        self.calls.append('send_raw_transaction')
        if self.broadcast_error is not None:
            raise self.broadcast_error

        raw = bytes(raw)
        assert raw[0] == 2, "expected an EIP-1559 transaction"
        fields = rlp.decode(raw[1:])
        chain_id = int.from_bytes(fields[0], 'big')
        nonce = int.from_bytes(fields[1], 'big')
        to = fields[5]
        data = fields[7]
        sender = Account.recover_transaction(raw)

        assert chain_id == CHAIN_ID
        expected = self.nonces.get(sender, 0)
        if nonce != expected:
            raise RPCError(f"nonce too low: got {nonce}, expected {expected}")
        self.nonces[sender] = nonce + 1

        tx_hash = '0x' + keccak(raw).hex()
        receipt = {'transactionHash': tx_hash, 'status': 1, 'logs': [], 'contractAddress': None}

        if not to:
            kind = 'create'
            address = predict_create_address(sender, nonce)
            receipt['contractAddress'] = address
            self._deploy(kind, address, receipt)
        elif to_checksum_address(to) == ARACHNID_CREATE2_FACTORY:
            kind = 'create2'
            address = predict_create2_address(ARACHNID_CREATE2_FACTORY, data[:32], data[32:])
            if self.create2_executes and self._deploy(kind, address, receipt):
                self.factories.add(address)
        elif to_checksum_address(to) in self.factories and data[:4] == bytes(DEPLOY_AND_CALL_SELECTOR):
            kind = 'proxy'
            factory = to_checksum_address(to)
            implementation, admin, _init = decode(['address', 'address', 'bytes'], data[4:])
            factory_nonce = self.nonces.get(factory, 1)
            self.nonces[factory] = factory_nonce + 1
            proxy = predict_create_address(factory, factory_nonce)
            if self._deploy(kind, proxy, receipt) and self.emit_deployed_event:
                receipt['logs'].append({
                    'address': factory,
                    'topics': [
                        DEPLOYED_EVENT_TOPIC,
                        _pad_topic(proxy),
                        _pad_topic(to_checksum_address(implementation)),
                        _pad_topic(to_checksum_address(admin)),
                    ],
                    'data': b'',
                })
        else:
            kind = 'call'

        self.transactions.append({'kind': kind, 'hash': tx_hash, 'nonce': nonce, 'sender': sender})
        self.receipts[tx_hash] = [self.receipt_delay, receipt]
        return tx_hash

    def _deploy(self, kind, address, receipt) -> bool:
        if kind in self.revert_kinds:
            receipt['status'] = 0
            return False
        self.code[address] = b'\x01'
        return True

    def get_receipt(self, tx_hash):
        self.calls.append('get_receipt')
        entry = self.receipts.get(tx_hash)
        if entry is None:
            return None
        if entry[0] > 0:
            entry[0] -= 1
            return None
        return entry[1]

    def close(self):
        pass


@pytest.fixture
def chain():
    return FakeChain()


@pytest.fixture
def registry():
    """Built-in descriptors with inline bytecode"""
    out = {}
    for key, descriptor in DESCRIPTORS.items():
        code = FACTORY_BYTECODE if key == 'erc1967factory' else IMPLEMENTATION_BYTECODE
        out[key] = dataclasses.replace(descriptor, bytecode_hex=code)
    return out


@pytest.fixture
def config():
    return PublishConfig(
        contract='relativequoter',
        rpc_url='http://127.0.0.1:8545',
        chain_id=CHAIN_ID,
        private_key=PRIVATE_KEY,
        timeout_seconds=60,
    )


@pytest.fixture
def factory_bytecode():
    return Web3.to_bytes(hexstr=FACTORY_BYTECODE)
