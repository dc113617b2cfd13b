"""
base32.py — Base32 codec (RFC 4648 alphabet) for authenticator secrets.

Authenticator apps hand out secrets as Base32 text, usually without the
trailing '=' padding and often with spaces or lower-case letters. This codec
is deliberately lenient on decode:

- whitespace is removed and the text is upper-cased,
- characters outside A-Z2-7 are SKIPPED, not rejected,
- only complete bytes are emitted (a trailing partial byte is dropped).

Known sharp edge: skipping unknown characters means a mistyped secret (for
example '0' instead of 'O') decodes to a different key without any error.
Existing entries depend on this behaviour, so it is kept as-is.
"""

BASE32_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_CHAR_VALUES = {char: index for index, char in enumerate(BASE32_CHARS)}


def base32_decode(encoded: str) -> bytes:
    """
    Decode Base32 text to raw key bytes. Never raises for str input.

    Example:
        base32_decode("JBSWY3DPEHPK3PXP") -> b'Hello!\\xde\\xad\\xbe\\xef'
    """
    clean = "".join(encoded.split()).upper()

    buffer = 0
    bit_count = 0
    out = bytearray()
    for char in clean:
        value = _CHAR_VALUES.get(char)
        if value is None:
            continue
        buffer = (buffer << 5) | value
        bit_count += 5
        if bit_count >= 8:
            bit_count -= 8
            out.append((buffer >> bit_count) & 0xFF)
            buffer &= (1 << bit_count) - 1
    return bytes(out)


def base32_encode(data: bytes) -> str:
    """
    Encode bytes to Base32 text without '=' padding.

    The last 5-bit group is filled with zero bits, so
    base32_decode(base32_encode(x)) == x for every byte string.
    """
    buffer = 0
    bit_count = 0
    chars = []
    for byte in data:
        buffer = (buffer << 8) | byte
        bit_count += 8
        while bit_count >= 5:
            bit_count -= 5
            chars.append(BASE32_CHARS[(buffer >> bit_count) & 0x1F])
        buffer &= (1 << bit_count) - 1
    if bit_count:
        # zero-fill the final group
        chars.append(BASE32_CHARS[(buffer << (5 - bit_count)) & 0x1F])
    return "".join(chars)
