"""Fixed-width limb encoding of big integers for circuit inputs."""

from .exceptions import EncodingOverflow
from .models import ChunkedEncoding, ChunkLayout

# 121 x 17 matches the circuit witness layout of the email verifier.
BYTE_PACKING_LAYOUT = ChunkLayout(chunk_bits=121, chunk_count=17)

# 242 x 9 keeps the hash input within Poseidon's 16-element limit.
HASH_INPUT_LAYOUT = ChunkLayout(chunk_bits=242, chunk_count=9)


def encode(modulus: int, layout: ChunkLayout) -> ChunkedEncoding:
    """Split ``modulus`` into ``layout.chunk_count`` little-endian limbs of ``layout.chunk_bits`` bits."""
    if layout.chunk_bits <= 0 or layout.chunk_count <= 0:
        raise ValueError(f"Invalid chunk layout: {layout}")
    if modulus < 0:
        raise ValueError("Cannot encode a negative integer")
    if modulus.bit_length() > layout.capacity_bits:
        raise EncodingOverflow(modulus.bit_length(), layout.capacity_bits)

    mask = (1 << layout.chunk_bits) - 1
    limbs = tuple(
        (modulus >> (layout.chunk_bits * i)) & mask
        for i in range(layout.chunk_count)
    )
    return ChunkedEncoding(layout=layout, limbs=limbs)


def decode(encoding: ChunkedEncoding) -> int:
    bits = encoding.layout.chunk_bits
    value = 0
    for i, limb in enumerate(encoding.limbs):
        if not 0 <= limb < (1 << bits):
            raise ValueError(f"Limb {i} out of range for {bits}-bit chunks")
        value |= limb << (bits * i)
    return value
