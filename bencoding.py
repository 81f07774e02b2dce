from itertools import chain

from values import BencDict, BencInt, BencList, BencString, BencValue, from_python
from utils import INT64_MIN, INT64_MAX, logger

# Each nested list or dict costs two interpreter frames while decoding
DEFAULT_MAX_DEPTH = 256

# len(str(2 ** 63)), anything longer cannot fit in 64 bits
MAX_INT_DIGITS = 19

_DONE = object()


class DecodeError(ValueError):
    """Raised for any input that is not valid canonical bencode."""

    def __init__(self, message, offset):
        super().__init__(f"{message} at offset {offset}")
        self.reason = message
        self.offset = offset


class Decoder:
    """
    Decodes Bencoded data (d, l, i, s) into a value tree.
    Uses a recursive descent parser. After decode() returns, `index` holds the
    number of bytes consumed, so trailing data is left for the caller.
    """
    def __init__(self, data, max_depth=DEFAULT_MAX_DEPTH):
        if data is None:
            data = b''
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"Decoder needs bytes, got {type(data).__name__}")
        self._data = bytes(data)
        self._index = 0
        self._depth = 0
        self.max_depth = max_depth

    @property
    def index(self):
        return self._index

    def decode(self):
        """Main entry point for decoding."""
        self._index = 0
        self._depth = 0
        try:
            try:
                return self._decode_value()
            except RecursionError:
                # max_depth was raised past what the interpreter stack can hold
                raise DecodeError("Nesting too deep for the interpreter stack", self._index) from None
        except DecodeError as e:
            logger.debug(f"Rejected bencoded input ({len(self._data)} bytes): {e}")
            raise

    def _fail(self, message, offset=None):
        raise DecodeError(message, self._index if offset is None else offset)

    def _peek(self):
        return self._data[self._index:self._index + 1]

    def _decode_value(self):
        char = self._peek()

        if char == b'i':
            return self._decode_int()
        elif char == b'l':
            return self._decode_list()
        elif char == b'd':
            return self._decode_dict()
        elif char.isdigit():
            return self._decode_string()
        elif not char:
            self._fail("Unexpected end of data")
        else:
            self._fail(f"Unrecognized value tag {char!r}")

    def _decode_int(self):
        start = self._index
        end = self._data.find(b'e', start + 1)
        if end == -1:
            self._fail("Unterminated integer", start)

        token = self._data[start + 1:end]
        negative = token.startswith(b'-')
        digits = token[1:] if negative else token
        if not digits.isdigit():
            self._fail(f"Malformed integer {token!r}", start)
        if digits.startswith(b'0') and (negative or len(digits) > 1):
            self._fail(f"Non-canonical integer {token!r}", start)
        if len(digits) > MAX_INT_DIGITS:
            self._fail("Integer does not fit in 64 bits", start)

        number = int(token)
        if not INT64_MIN <= number <= INT64_MAX:
            self._fail("Integer does not fit in 64 bits", start)

        self._index = end + 1  # Skip 'e'
        return BencInt(number)

    def _decode_string(self):
        start = self._index
        colon = self._data.find(b':', start)
        if colon == -1:
            self._fail("Missing ':' after string length", start)

        digits = self._data[start:colon]
        if not digits.isdigit():
            self._fail(f"Malformed string length {digits!r}", start)

        payload = colon + 1
        available = len(self._data) - payload
        # Compare digit counts first so a huge length never reaches int()
        if len(digits.lstrip(b'0')) > len(str(available)) or int(digits) > available:
            self._fail(f"String needs {digits.decode()} bytes, only {available} left", start)

        length = int(digits)
        self._index = payload + length
        return BencString(self._data[payload:self._index])

    def _enter(self, start):
        self._depth += 1
        if self._depth > self.max_depth:
            self._fail(f"Nesting deeper than {self.max_depth} levels", start)

    def _decode_list(self):
        start = self._index
        self._enter(start)
        self._index += 1  # Skip 'l'
        lst = BencList()
        while self._peek() != b'e':
            if not self._peek():
                self._fail("Unterminated list", start)
            lst.add(self._decode_value())
        self._index += 1  # Skip 'e'
        self._depth -= 1
        return lst

    def _decode_dict(self):
        start = self._index
        self._enter(start)
        self._index += 1  # Skip 'd'
        d = BencDict()
        while self._peek() != b'e':
            char = self._peek()
            if not char:
                self._fail("Unterminated dictionary", start)
            if not char.isdigit():
                # Keys in bencoded dicts must be strings (bytes)
                self._fail("Dictionary key is not a byte string")
            key = self._decode_string()
            # Duplicate keys: the later value wins
            d.add(key.raw, self._decode_value())
        self._index += 1  # Skip 'e'
        self._depth -= 1
        return d


class Encoder:
    """Encodes value trees (or plain Python objects) into canonical Bencoded bytes."""
    @staticmethod
    def encode(data) -> bytes:
        if not isinstance(data, BencValue):
            data = from_python(data)
        chunks = []
        Encoder._encode_into(data, chunks)
        return b"".join(chunks)

    @staticmethod
    def _encode_into(value, chunks):
        # Explicit stack of token iterators, so nesting depth is not limited
        # by the interpreter stack. A token is either raw output or a value.
        stack = [iter((value,))]
        while stack:
            token = next(stack[-1], _DONE)
            if token is _DONE:
                stack.pop()
            elif isinstance(token, bytes):
                chunks.append(token)
            elif isinstance(token, BencInt):
                chunks.append(f"i{token.value}e".encode())
            elif isinstance(token, BencString):
                chunks.append(f"{len(token.raw)}:".encode())
                chunks.append(token.raw)
            elif isinstance(token, BencList):
                chunks.append(b"l")
                stack.append(chain(token, (b"e",)))
            elif isinstance(token, BencDict):
                chunks.append(b"d")
                stack.append(chain(_dict_tokens(token), (b"e",)))
            else:
                raise TypeError(f"Cannot encode type: {type(token)}")


def _dict_tokens(value):
    # BencDict keeps its keys sorted, so items() is already canonical order
    for key, item in value.items():
        yield f"{len(key)}:".encode() + key
        yield item


def decode(data, max_depth=DEFAULT_MAX_DEPTH):
    """Decodes one value from the start of `data` and returns (value, bytes_consumed)."""
    decoder = Decoder(data, max_depth)
    value = decoder.decode()
    return value, decoder.index


def loads(data, max_depth=DEFAULT_MAX_DEPTH):
    """Like decode(), but the value must span the whole buffer."""
    value, consumed = decode(data, max_depth)
    if consumed != len(data):
        logger.debug(f"Rejected bencoded input: {len(data) - consumed} trailing bytes")
        raise DecodeError("Trailing data after bencoded value", consumed)
    return value


def encode(value) -> bytes:
    return Encoder.encode(value)


dumps = encode
