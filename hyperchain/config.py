"""Network-wide constants."""

BLOCK_TIME = 10 * 1000
"""Target time between blocks, in milliseconds."""

BLOCK_SAMPLE_SIZE = 100
"""Number of blocks between difficulty adjustments."""

PAGE_CHUNK_SIZE = 1000 * 1000
"""Size of one stored page chunk, in bytes (1MB)."""

PUB_KEY_LEN = 256
"""Length of a public key or signature, in bytes."""

HASH_LEN = 32
"""Length of a hash, in bytes."""