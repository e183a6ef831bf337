"""circomlib-compatible Poseidon round constants and MDS matrices.

circomlib's tables were produced by the Poseidon reference parameter
generator: a Grain LFSR in self-shrinking mode, seeded with the instance
parameters, emits the round constants and then the x/y points of a Cauchy
MDS matrix. The same stream is reproduced here so every width the circuits
use (2..17) is available without shipping the tables.
"""

import functools

GRAIN_STATE_BITS = 80
GRAIN_WARMUP_BITS = 160

# Seed tags: b0..b1 field type (1 = prime field), b2..b5 S-box (0 = x^alpha)
PRIME_FIELD_TAG = 1
POWER_SBOX_TAG = 0


class GrainLFSR:
    """80-bit Grain LFSR, b(i+80) = b(i+62) ^ b(i+51) ^ b(i+38) ^ b(i+23) ^ b(i+13) ^ b(i)."""

    def __init__(self, field_bits: int, width: int, full_rounds: int, partial_rounds: int):
        seed = (
            format(PRIME_FIELD_TAG, "02b")
            + format(POWER_SBOX_TAG, "04b")
            + format(field_bits, "012b")
            + format(width, "012b")
            + format(full_rounds, "010b")
            + format(partial_rounds, "010b")
            + "1" * 30
        )
        # bit i of the register holds b_i, so b_0 (oldest) is the low bit
        self._register = int(seed[::-1], 2)
        for _ in range(GRAIN_WARMUP_BITS):
            self._clock()

    def _clock(self) -> int:
        r = self._register
        bit = ((r >> 62) ^ (r >> 51) ^ (r >> 38) ^ (r >> 23) ^ (r >> 13) ^ r) & 1
        self._register = (r >> 1) | (bit << (GRAIN_STATE_BITS - 1))
        return bit

    def next_bit(self) -> int:
        # Self-shrinking: of each pair, the second bit is kept only if the first is 1.
        while True:
            keep = self._clock()
            bit = self._clock()
            if keep:
                return bit

    def random_bits(self, count: int) -> int:
        """Next `count` output bits as an integer, first bit most significant."""
        value = 0
        for _ in range(count):
            value = (value << 1) | self.next_bit()
        return value


def _round_constant(grain: GrainLFSR, prime: int, field_bits: int) -> int:
    # Rejection sampling: draws that are not field elements are discarded.
    while True:
        value = grain.random_bits(field_bits)
        if value < prime:
            return value


def _cauchy_matrix(grain: GrainLFSR, prime: int, field_bits: int, width: int) -> tuple:
    while True:
        points = [grain.random_bits(field_bits) % prime for _ in range(2 * width)]
        while len(set(points)) != len(points):
            points = [grain.random_bits(field_bits) % prime for _ in range(2 * width)]
        xs, ys = points[:width], points[width:]
        if any((x + y) % prime == 0 for x in xs for y in ys):
            continue
        return tuple(tuple(pow(x + y, -1, prime) for y in ys) for x in xs)


@functools.lru_cache(maxsize=None)
def circomlib_parameters(width: int, prime: int, full_rounds: int, partial_rounds: int) -> tuple:
    """Return (round_constants, mds_matrix) for one Poseidon instance.

    round_constants is flat, `width` entries per round in application order;
    mds_matrix[i][j] multiplies state[j] into the new state[i].
    """
    field_bits = prime.bit_length()
    grain = GrainLFSR(field_bits, width, full_rounds, partial_rounds)
    constants = tuple(
        _round_constant(grain, prime, field_bits)
        for _ in range(width * (full_rounds + partial_rounds))
    )
    return constants, _cauchy_matrix(grain, prime, field_bits, width)
