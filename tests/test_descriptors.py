"""
Contract Descriptor Tests
"""

import dataclasses

import pytest
from eth_abi import decode
from web3 import Web3

from publisher.config import ZERO_ADDRESS, PublishConfig
from publisher.descriptors import DESCRIPTORS, get_descriptor, to_bytes32
from utils.exceptions import InputError

OWNER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
A = "0x1111111111111111111111111111111111111111"
B = "0x2222222222222222222222222222222222222222"
C = "0x3333333333333333333333333333333333333333"


def selector(signature):
    return bytes(Web3.keccak(text=signature)[:4])


class TestRegistry:

    def test_lookup_is_case_insensitive(self):
        assert get_descriptor(" RelativeQuoter ").key == 'relativequoter'

    @pytest.mark.parametrize("alias,key", [
        ('token', 'giftabletoken'),
        ('pfc', 'protocolfeecontroller'),
        ('tokenindex', 'tokenuniquesymbolindex'),
        ('factory', 'erc1967factory'),
    ])
    def test_aliases(self, alias, key):
        assert get_descriptor(alias).key == key

    def test_unsupported(self):
        with pytest.raises(InputError):
            get_descriptor('nosuchcontract')

    def test_proxied_flags(self):
        assert not DESCRIPTORS['erc1967factory'].proxied
        assert not DESCRIPTORS['decimalquoter'].proxied
        assert DESCRIPTORS['relativequoter'].proxied


class TestBytecode:

    def test_reads_artifact(self, tmp_path):
        (tmp_path / "RelativeQuoter.bin").write_text("0x6080\n")
        assert DESCRIPTORS['relativequoter'].bytecode(str(tmp_path)) == b'\x60\x80'

    def test_missing_artifact(self, tmp_path):
        with pytest.raises(InputError) as exc:
            DESCRIPTORS['limiter'].bytecode(str(tmp_path))
        assert "Limiter.bin" in str(exc.value)

    def test_invalid_artifact(self, tmp_path):
        (tmp_path / "CAT.bin").write_text("not hex")
        with pytest.raises(InputError):
            DESCRIPTORS['cat'].bytecode(str(tmp_path))

    def test_inline_bytecode(self):
        descriptor = dataclasses.replace(DESCRIPTORS['cat'], bytecode_hex="0xdeadbeef")
        assert descriptor.bytecode("/nonexistent") == b'\xde\xad\xbe\xef'


class TestInitEncoding:

    def test_owner_only(self):
        descriptor = DESCRIPTORS['relativequoter']
        args = descriptor.init_args(PublishConfig(), OWNER)
        data = descriptor.encode_init(args)

        assert data[:4] == selector("initialize(address)")
        assert data[4:] == bytes(12) + bytes.fromhex(OWNER[2:])

    def test_splitter(self):
        cfg = PublishConfig(splitter_accounts=f"{A}, {B}", splitter_allocations="60,40")
        descriptor = DESCRIPTORS['splitter']
        data = descriptor.encode_init(descriptor.init_args(cfg, OWNER))

        assert data[:4] == selector("initialize(address,address[],uint32[])")
        owner, accounts, allocations = decode(['address', 'address[]', 'uint32[]'], data[4:])
        assert owner.lower() == OWNER.lower()
        assert [a.lower() for a in accounts] == [A, B]
        assert list(allocations) == [60, 40]

    def test_splitter_length_mismatch(self):
        cfg = PublishConfig(splitter_accounts=f"{A},{B},{C}", splitter_allocations="50,50")
        with pytest.raises(InputError):
            DESCRIPTORS['splitter'].init_args(cfg, OWNER)

    def test_splitter_bad_address(self):
        cfg = PublishConfig(splitter_accounts=f"{A},0x1234", splitter_allocations="50,50")
        with pytest.raises(InputError) as exc:
            DESCRIPTORS['splitter'].init_args(cfg, OWNER)
        assert "splitter-accounts[1]" in str(exc.value)

    def test_splitter_bad_allocation(self):
        cfg = PublishConfig(splitter_accounts=A, splitter_allocations="4294967296")
        with pytest.raises(InputError):
            DESCRIPTORS['splitter'].init_args(cfg, OWNER)

    def test_contract_registry_requires_identifiers(self):
        with pytest.raises(InputError):
            DESCRIPTORS['contractregistry'].init_args(PublishConfig(), OWNER)

    def test_contract_registry_identifiers(self):
        cfg = PublishConfig(registry_identifiers="TokenRegistry,AccountRegistry")
        descriptor = DESCRIPTORS['contractregistry']
        data = descriptor.encode_init(descriptor.init_args(cfg, OWNER))

        _, identifiers = decode(['address', 'bytes32[]'], data[4:])
        assert identifiers[0] == b"TokenRegistry".ljust(32, b'\x00')
        assert identifiers[1] == b"AccountRegistry".ljust(32, b'\x00')

    def test_bytes32_too_long(self):
        with pytest.raises(InputError):
            to_bytes32("x" * 33, "identifier")

    def test_token_index_mismatch(self):
        cfg = PublishConfig(token_index_tokens=f"{A},{B}", token_index_symbols="AAA")
        with pytest.raises(InputError):
            DESCRIPTORS['tokenuniquesymbolindex'].init_args(cfg, OWNER)

    def test_token_index_empty_lists(self):
        args = DESCRIPTORS['tokenuniquesymbolindex'].init_args(PublishConfig(), OWNER)
        assert args == [OWNER, [], []]

    def test_giftable_token(self):
        cfg = PublishConfig(token_name="Sarafu", token_symbol="SRF", token_decimals=6, token_expires_at=0)
        descriptor = DESCRIPTORS['giftabletoken']
        data = descriptor.encode_init(descriptor.init_args(cfg, OWNER))

        name, symbol, decimals, owner, expires = decode(
            ['string', 'string', 'uint8', 'address', 'uint256'], data[4:]
        )
        assert (name, symbol, decimals, expires) == ("Sarafu", "SRF", 6, 0)

    def test_giftable_token_decimals_range(self):
        cfg = PublishConfig(token_decimals=256)
        with pytest.raises(InputError):
            DESCRIPTORS['giftabletoken'].init_args(cfg, OWNER)

    def test_defaults_to_owner(self):
        args = DESCRIPTORS['protocolfeecontroller'].init_args(PublishConfig(protocol_fee=10), OWNER)
        assert args == [OWNER, 10, OWNER]

        args = DESCRIPTORS['periodsimple'].init_args(PublishConfig(period_poker=A), OWNER)
        assert args == [OWNER, Web3.to_checksum_address(A)]

    def test_oracle_quoter_requires_base_currency(self):
        with pytest.raises(InputError):
            DESCRIPTORS['oraclequoter'].init_args(PublishConfig(), OWNER)


class TestSwapPool:

    def config(self, **overrides):
        values = dict(
            pool_fee_policy=A,
            pool_token_limiter=B,
            pool_protocol_fee_controller=C,
            pool_quoter="0x4444444444444444444444444444444444444444",
        )
        values.update(overrides)
        return PublishConfig(**values)

    def test_arguments(self):
        descriptor = DESCRIPTORS['swappool']
        args = descriptor.init_args(self.config(), OWNER)

        assert args[0:4] == ["Sarafu Pool", "SRFp", 6, OWNER]
        assert args[5] == OWNER
        assert args[6] == ZERO_ADDRESS
        assert args[9] is False
        assert len(descriptor.encode_init(args)) > 4

    def test_quoter_must_be_address(self):
        with pytest.raises(InputError):
            DESCRIPTORS['swappool'].init_args(self.config(pool_quoter="relative"), OWNER)

    def test_quoter_kind_validated(self):
        with pytest.raises(InputError):
            DESCRIPTORS['swappool'].init_args(self.config(pool_quoter_kind="other"), OWNER)

    def test_required_dependencies(self):
        with pytest.raises(InputError) as exc:
            DESCRIPTORS['swappool'].init_args(self.config(pool_token_limiter=""), OWNER)
        assert "pool-token-limiter" in str(exc.value)


class TestBytecodeValidation:

    def test_empty_artifact(self, tmp_path):
        (tmp_path / "Splitter.bin").write_text("0x\n")
        with pytest.raises(InputError) as exc:
            DESCRIPTORS['splitter'].bytecode(str(tmp_path))
        assert "empty" in str(exc.value)

    def test_inline_invalid_hex(self):
        descriptor = dataclasses.replace(DESCRIPTORS['cat'], bytecode_hex="0xzz")
        with pytest.raises(InputError):
            descriptor.bytecode()

    def test_inline_empty(self):
        descriptor = dataclasses.replace(DESCRIPTORS['cat'], bytecode_hex="")
        with pytest.raises(InputError):
            descriptor.bytecode()
