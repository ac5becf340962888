"""Incremental MD5 message digest (RFC 1321).

This module provides a small, readable implementation of MD5 that can be fed
its input across any number of calls. The engine is stateful: the internal
state words a, b, c, d are updated as complete 512-bit blocks become
available, and the trailing partial block is kept until the digest is
finalized.

"""

BLOCK_SIZE = 64
DIGEST_LENGTH = 16  # 128 / 8
LENGTH_SUFFIX_SIZE = 8  # 64-bit message length

MASK32 = 0xffffffff
MASK64 = 0xffffffffffffffff

INITIAL_STATE = (0x67452301, 0xefcdab89, 0x98badcfe, 0x10325476)

# Per-round left-rotation amounts (RFC 1321), one 4-cycle per quartile
S_TABLE = ((7, 12, 17, 22),
           (5, 9, 14, 20),
           (4, 11, 16, 23),
           (6, 10, 15, 21))

S_VALUES = tuple(S_TABLE[i // 16][i % 4] for i in range(64))

# floor(2^32 * |sin(i + 1)|)
K_VALUES = (
    0xd76aa478, 0xe8c7b756, 0x242070db, 0xc1bdceee,
    0xf57c0faf, 0x4787c62a, 0xa8304613, 0xfd469501,
    0x698098d8, 0x8b44f7af, 0xffff5bb1, 0x895cd7be,
    0x6b901122, 0xfd987193, 0xa679438e, 0x49b40821,
    0xf61e2562, 0xc040b340, 0x265e5a51, 0xe9b6c7aa,
    0xd62f105d, 0x02441453, 0xd8a1e681, 0xe7d3fbc8,
    0x21e1cde6, 0xc33707d6, 0xf4d50d87, 0x455a14ed,
    0xa9e3e905, 0xfcefa3f8, 0x676f02d9, 0x8d2a4c8a,
    0xfffa3942, 0x8771f681, 0x6d9d6122, 0xfde5380c,
    0xa4beea44, 0x4bdecfa9, 0xf6bb4b60, 0xbebfbc70,
    0x289b7ec6, 0xeaa127fa, 0xd4ef3085, 0x04881d05,
    0xd9d4d039, 0xe6db99e5, 0x1fa27cf8, 0xc4ac5665,
    0xf4292244, 0x432aff97, 0xab9423a7, 0xfc93a039,
    0x655b59c3, 0x8f0ccc92, 0xffeff47d, 0x85845dd1,
    0x6fa87e4f, 0xfe2ce6e0, 0xa3014314, 0x4e0811a1,
    0xf7537e82, 0xbd3af235, 0x2ad7d2bb, 0xeb86d391,
)


def word_bits(x):
    """Return a 32-bit integer as a 32-character bitstring (MSB first)."""
    b = x
    s = ""
    for _ in range(32):
        s += str(b & 1)
        b = b >> 1
    return s[::-1]


def print_word(x):
    """Print a 32-bit integer as a 32-character bitstring (MSB first)."""
    print(word_bits(x))


def bytes_to_word(data, offset=0):
    """Decode the little-endian 32-bit word starting at data[offset]."""
    return (data[offset]
            | (data[offset + 1] << 8)
            | (data[offset + 2] << 16)
            | (data[offset + 3] << 24))


def word_to_bytes(word, length=4):
    """Encode word as `length` little-endian bytes (high bits are dropped)."""
    return bytes((word >> (8 * i)) & 0xff for i in range(length))


def bit_padding(data, block_size, allowance=0):
    """Return data padded with ISO/IEC 9797-1 padding method 2.

    A single 0x80 byte is appended, then 0x00 bytes until the padded length
    is `block_size - allowance` modulo `block_size`. The `allowance` bytes
    are left for the caller (MD5 puts the 64-bit message length there).
    """
    msg_length = len(data)
    limit = block_size - allowance
    if msg_length % block_size < limit:
        zeros = limit - 1 - (msg_length % block_size)
    else:
        zeros = block_size + limit - 1 - (msg_length % block_size)
    return bytes(data) + b"\x80" + zeros * b"\x00"


class MD5:
    """Streaming MD5 engine.

    Feed bytes with `update`; the digest is produced by `finalize`, which also
    returns the instance to its freshly constructed condition.
    """

    block_size = BLOCK_SIZE
    digest_length = DIGEST_LENGTH

    def __init__(self):
        """Initialize to the MD5 initial vector (IV) with nothing buffered."""
        self.reset()

    def reset(self):
        """Return to the initial vector with an empty buffer and zero byte count."""
        self.a, self.b, self.c, self.d = INITIAL_STATE
        self.accumulated = bytearray()
        self.processed_bytes = 0

    @property
    def state(self):
        """The four working words (a, b, c, d)."""
        return (self.a, self.b, self.c, self.d)

    @state.setter
    def state(self, value):
        self.a, self.b, self.c, self.d = value

    @staticmethod
    def S(i):
        """Return the rotation amount for step index i (0 ≤ i < 64)."""
        return S_VALUES[i]

    @staticmethod
    def K(i):
        """Return the i-th sine-derived constant (floor(2^32 · |sin(i+1)|))."""
        return K_VALUES[i]

    @staticmethod
    def F(b, c, d, i):
        """MD5 non-linear boolean function selected by round index i.

        Round 0 (i < 16): (b & c) | (~b & d)
        Round 1 (i < 32): (d & b) | (~d & c)
        Round 2 (i < 48): b ^ c ^ d
        Round 3 (i < 64): c ^ (b | ~d)
        """
        if 0 <= i < 16:
            return (b & c) | (~b & d)
        elif 16 <= i < 32:
            return (d & b) | (~d & c)
        elif 32 <= i < 48:
            return b ^ c ^ d
        elif 48 <= i < 64:
            return c ^ (b | ~d)
        else:
            raise ValueError("Invalid loop index")

    @staticmethod
    def G(i):
        """Return the index of the message word consumed at step i."""
        if i < 16:
            return i
        elif i < 32:
            return (5*i + 1) % 16
        elif i < 48:
            return (3*i + 5) % 16
        return (7*i) % 16

    @staticmethod
    def ROT(x, i):
        """Rotate x left by S(i) bits, modulo 2^32."""
        x = x & MASK32
        n = MD5.S(i)
        return ((x << n) | (x >> (32 - n))) & MASK32

    @staticmethod
    def combine_words(a, b, c, d, x, i):
        """Compute b + ROT(a + F(b,c,d) + x + K(i), S(i)) (mod 2^32)."""
        f = MD5.F(b, c, d, i)
        comb = a + f + x + MD5.K(i)
        return (MD5.ROT(comb, i) + b) & MASK32

    @staticmethod
    def md5_iteration(a, b, c, d, x, i):
        """Perform one MD5 step (i) on state (a,b,c,d) with 32-bit word x."""
        a_new = d
        c_new = b
        d_new = c
        b_new = MD5.combine_words(a, b, c, d, x, i)
        return a_new, b_new, c_new, d_new

    @staticmethod
    def compress(block, state):
        """Return the state that follows `state` after one 64-byte block.

        The block is read as sixteen little-endian 32-bit words M[0..15]; step
        i consumes M[G(i)]. The working words are added back into the
        incoming state (mod 2^32) once all 64 steps have run.
        """
        assert len(block) == BLOCK_SIZE
        words = [bytes_to_word(block, 4*k) for k in range(16)]
        a, b, c, d = state
        for i in range(64):
            a, b, c, d = MD5.md5_iteration(a, b, c, d, words[MD5.G(i)], i)

        return ((state[0] + a) & MASK32,
                (state[1] + b) & MASK32,
                (state[2] + c) & MASK32,
                (state[3] + d) & MASK32)

    @staticmethod
    def padding(trailing, total_bits):
        """Return the closing block(s) for a stream.

        `trailing` holds the bytes not yet compressed (fewer than 64) and
        `total_bits` the length of the whole stream in bits. The result is
        trailing + 0x80 + zeros + the 64-bit little-endian bit length, and is
        64 or 128 bytes long.
        """
        padded = bit_padding(trailing, BLOCK_SIZE, allowance=LENGTH_SUFFIX_SIZE)
        return padded + word_to_bytes(total_bits & MASK64, LENGTH_SUFFIX_SIZE)

    @staticmethod
    def md5_padded(input_bytes):
        """Return input_bytes padded to a multiple of 64 bytes per MD5."""
        return MD5.padding(input_bytes, len(input_bytes) * 8)

    @staticmethod
    def serialize(state):
        """Pack the state words a,b,c,d as 16 little-endian bytes."""
        return b"".join(word_to_bytes(word) for word in state)

    def _drain(self, count):
        chunk = bytes(self.accumulated[:count])
        del self.accumulated[:count]
        return chunk

    def update(self, data, is_last=False):
        """Absorb data, compressing every complete block that is available.

        Returns the current state serialized as 16 bytes. Unless `is_last`
        is set this is an intermediate snapshot, not the digest; with
        `is_last` the data is absorbed and the stream is finalized.
        """
        self.accumulated += data
        while len(self.accumulated) >= BLOCK_SIZE:
            self.state = MD5.compress(self._drain(BLOCK_SIZE), self.state)
            self.processed_bytes += BLOCK_SIZE
        if is_last:
            return self.finalize()
        return MD5.serialize(self.state)

    def finalize(self):
        """Pad and compress the buffered tail, returning the 16-byte digest.

        The instance is reset afterwards and can hash a new stream.
        """
        total_bits = (self.processed_bytes + len(self.accumulated)) * 8
        tail = MD5.padding(self._drain(len(self.accumulated)), total_bits)
        state = self.state
        for i in range(0, len(tail), BLOCK_SIZE):
            state = MD5.compress(tail[i:i + BLOCK_SIZE], state)
        # The byte counter is reset along with the state and buffer so that a
        # stream started after finalize gets its own length suffix.
        self.reset()
        return MD5.serialize(state)

    def finish(self):
        """Alias for finalize."""
        return self.finalize()

    def calculate(self, data):
        """One-shot digest of data; this instance's pending stream is untouched."""
        md5 = type(self)()
        md5.update(data)
        return md5.finalize()

    def copy(self):
        """Return an independent engine with the same state and buffered bytes."""
        md5 = type(self)()
        md5.state = self.state
        md5.accumulated = bytearray(self.accumulated)
        md5.processed_bytes = self.processed_bytes
        return md5


def md5_digest(data):
    """Return the 16-byte MD5 digest of data."""
    return MD5().calculate(data)


def md5_hexdigest(data):
    """Return the MD5 digest of data as 32 lowercase hex characters."""
    return md5_digest(data).hex()
