"""Poseidon commitment of a chunked public key over the BN254 scalar field."""

import contextlib
import functools
import io
import threading

import poseidon

from .encoding import HASH_INPUT_LAYOUT
from .exceptions import ConfigurationError
from .models import ChunkedEncoding, ChunkLayout
from .poseidon_params import circomlib_parameters

BN254_PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617

# Largest limb width that always fits below the prime without wraparound.
FIELD_CAPACITY_BITS = BN254_PRIME.bit_length() - 1

# The Poseidon instances used by the circuits accept at most 16 inputs (width 17).
MAX_POSEIDON_INPUTS = 16

SECURITY_LEVEL = 128
ALPHA = 5
FULL_ROUNDS = 8
# circomlib partial round counts, indexed by number of inputs - 1
PARTIAL_ROUNDS = (56, 57, 56, 60, 60, 63, 64, 63, 60, 66, 60, 65, 70, 60, 64, 68)


def validate_hash_layout(layout: ChunkLayout) -> None:
    if not 1 <= layout.chunk_count <= MAX_POSEIDON_INPUTS:
        raise ConfigurationError(
            f"Hash layout needs {layout.chunk_count} inputs; Poseidon accepts 1..{MAX_POSEIDON_INPUTS}"
        )
    if not 1 <= layout.chunk_bits <= FIELD_CAPACITY_BITS:
        raise ConfigurationError(
            f"{layout.chunk_bits}-bit limbs exceed the {FIELD_CAPACITY_BITS}-bit field capacity"
        )


class CommitmentHasher:
    """circomlib Poseidon: state [0, limbs...], output is state[0] after the permutation."""

    def __init__(self, layout: ChunkLayout = HASH_INPUT_LAYOUT):
        validate_hash_layout(layout)
        self.layout = layout
        inputs = layout.chunk_count
        width = inputs + 1
        partial_rounds = PARTIAL_ROUNDS[inputs - 1]
        constants, mds = circomlib_parameters(width, BN254_PRIME, FULL_ROUNDS, partial_rounds)
        # The library reports each setup step on stdout.
        with contextlib.redirect_stdout(io.StringIO()):
            self._poseidon = poseidon.Poseidon(
                BN254_PRIME,
                SECURITY_LEVEL,
                ALPHA,
                inputs,
                width,
                full_round=FULL_ROUNDS,
                partial_round=partial_rounds,
                mds_matrix=[[hex(v) for v in row] for row in mds],
                rc_list=[hex(c) for c in constants],
            )
        # run_hash keeps its permutation state on the instance
        self._lock = threading.Lock()

    def hash(self, encoding: ChunkedEncoding) -> int:
        """Poseidon over the limbs as field elements, capacity element first."""
        if encoding.layout != self.layout:
            raise ValueError(f"Encoding layout {encoding.layout} does not match hasher layout {self.layout}")
        state = [0] + [int(limb) for limb in encoding.limbs]
        with self._lock:
            # run_hash returns state[1]; circomlib reads state[0]
            self._poseidon.run_hash(state)
            digest = self._poseidon.state[0]
        return int(digest)


@functools.lru_cache(maxsize=None)
def commitment_hasher(layout: ChunkLayout = HASH_INPUT_LAYOUT) -> CommitmentHasher:
    """Process-wide hasher per layout. Building one sets up GF(p) arithmetic."""
    return CommitmentHasher(layout)
