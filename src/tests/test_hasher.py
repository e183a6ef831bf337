"""Unit tests for CommitmentHasher — known answers, determinism, field range and layout validation."""

import pytest

from dkim_registry.encoding import BYTE_PACKING_LAYOUT, HASH_INPUT_LAYOUT, encode
from dkim_registry.exceptions import ConfigurationError
from dkim_registry.hasher import (
    BN254_PRIME,
    FIELD_CAPACITY_BITS,
    MAX_POSEIDON_INPUTS,
    CommitmentHasher,
    commitment_hasher,
    validate_hash_layout,
)
from dkim_registry.models import ChunkedEncoding, ChunkLayout

from .helpers import modulus_of, rsa_key


@pytest.fixture(scope="module")
def hasher():
    return commitment_hasher()


def poseidon_of(values):
    layout = ChunkLayout(chunk_bits=8, chunk_count=len(values))
    return commitment_hasher(layout).hash(ChunkedEncoding(layout, tuple(values)))


class TestCircomlibVectors:
    # Outputs of circomlibjs buildPoseidon() for the same inputs.
    def test_two_inputs(self):
        assert poseidon_of([1, 2]) == (
            7853200120776062878684798364095072458815029376092732009249414926327459813530
        )

    def test_six_inputs(self):
        assert poseidon_of([1, 2, 3, 4, 5, 6]) == (
            20400040500897583745843009878988256314335038853985262692600694741116813247201
        )

    def test_input_order_matters(self):
        assert poseidon_of([1, 2]) != poseidon_of([2, 1])


class TestCommitment:
    def test_deterministic(self, hasher):
        encoding = encode(modulus_of(rsa_key()), HASH_INPUT_LAYOUT)
        assert hasher.hash(encoding) == hasher.hash(encoding)

    def test_fresh_hasher_reproduces_commitment(self, hasher):
        encoding = encode(modulus_of(rsa_key()), HASH_INPUT_LAYOUT)
        assert CommitmentHasher().hash(encoding) == hasher.hash(encoding)

    def test_result_is_field_element(self, hasher):
        commitment = hasher.hash(encode(modulus_of(rsa_key()), HASH_INPUT_LAYOUT))
        assert isinstance(commitment, int)
        assert 0 <= commitment < BN254_PRIME

    def test_distinct_keys_distinct_commitments(self, hasher):
        a = hasher.hash(encode(modulus_of(rsa_key(index=0)), HASH_INPUT_LAYOUT))
        b = hasher.hash(encode(modulus_of(rsa_key(index=1)), HASH_INPUT_LAYOUT))
        assert a != b

    def test_layout_mismatch_rejected(self, hasher):
        with pytest.raises(ValueError):
            hasher.hash(encode(modulus_of(rsa_key()), BYTE_PACKING_LAYOUT))


class TestConstruction:
    def test_setup_writes_nothing_to_stdout(self, capsys):
        CommitmentHasher(ChunkLayout(chunk_bits=8, chunk_count=3))
        assert capsys.readouterr().out == ""

    def test_shared_instance_per_layout(self):
        layout = ChunkLayout(chunk_bits=8, chunk_count=2)
        assert commitment_hasher(layout) is commitment_hasher(layout)

    def test_default_shared_instance_uses_hash_layout(self, hasher):
        assert hasher.layout == HASH_INPUT_LAYOUT


class TestLayoutValidation:
    def test_default_layout_is_valid(self):
        validate_hash_layout(HASH_INPUT_LAYOUT)

    def test_hash_layout_within_input_cap(self):
        assert HASH_INPUT_LAYOUT.chunk_count <= MAX_POSEIDON_INPUTS

    def test_byte_packing_layout_exceeds_input_cap(self):
        # 17 limbs is one too many for a single Poseidon call
        with pytest.raises(ConfigurationError, match="inputs"):
            validate_hash_layout(BYTE_PACKING_LAYOUT)

    def test_limbs_wider_than_field_rejected(self):
        with pytest.raises(ConfigurationError, match="field capacity"):
            validate_hash_layout(ChunkLayout(chunk_bits=FIELD_CAPACITY_BITS + 1, chunk_count=8))

    def test_field_capacity_is_253_bits(self):
        assert FIELD_CAPACITY_BITS == 253

    def test_hasher_validates_at_construction(self):
        with pytest.raises(ConfigurationError):
            CommitmentHasher(ChunkLayout(chunk_bits=121, chunk_count=17))
