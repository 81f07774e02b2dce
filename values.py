"""
The in-memory value model for bencoded data.

A bencoded document is a tree built from four kinds of values:
1. BencInt: a signed 64-bit integer.
2. BencString: an immutable run of raw bytes, optionally viewable as UTF-8 text.
3. BencList: an ordered list of values.
4. BencDict: a mapping from byte-string keys to values, always sorted by key.

Containers own their children. A value can sit inside at most one container;
removing it hands it back to the caller, who may add it somewhere else.
"""
from bisect import bisect_left
from enum import Enum

from utils import INT64_MIN, INT64_MAX, to_bytes


class Kind(Enum):
    INTEGER = 'integer'
    STRING = 'string'
    LIST = 'list'
    DICT = 'dict'


class BencValue:
    """Common base for the four value kinds."""
    kind = None

    def __init__(self):
        self._owner = None

    @property
    def owner(self):
        """The container holding this value, or None for a detached value."""
        return self._owner


class BencInt(BencValue):
    kind = Kind.INTEGER

    def __init__(self, value: int):
        super().__init__()
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"BencInt needs an int, got {type(value).__name__}")
        if not INT64_MIN <= value <= INT64_MAX:
            raise OverflowError(f"{value} does not fit in a signed 64-bit integer")
        self._value = value

    @property
    def value(self) -> int:
        return self._value

    def __eq__(self, other):
        if not isinstance(other, BencInt):
            return NotImplemented
        return self._value == other._value

    def __hash__(self):
        return hash((Kind.INTEGER, self._value))

    def __repr__(self):
        return f"BencInt({self._value})"


class BencString(BencValue):
    kind = Kind.STRING

    def __init__(self, data):
        super().__init__()
        self._raw = to_bytes(data)

    @classmethod
    def from_raw(cls, data, length=None):
        """
        Wraps raw bytes without any text interpretation.
        An explicit length keeps only the first `length` bytes of `data`.
        """
        raw = to_bytes(data)
        if length is not None:
            if length < 0 or length > len(raw):
                raise ValueError(f"Length {length} is outside the buffer (size {len(raw)})")
            raw = raw[:length]
        return cls(raw)

    @property
    def raw(self) -> bytes:
        return self._raw

    @property
    def text(self) -> str:
        """
        The payload decoded as UTF-8.
        Raises UnicodeDecodeError when the bytes are not valid UTF-8.
        """
        return self._raw.decode('utf-8')

    def __len__(self):
        return len(self._raw)

    def __eq__(self, other):
        if not isinstance(other, BencString):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self):
        return hash((Kind.STRING, self._raw))

    def __repr__(self):
        return f"BencString({self._raw!r})"


def _wrap(value):
    """Turns the convenience inputs (int, bytes, str) into values."""
    if isinstance(value, BencValue):
        return value
    if isinstance(value, bool):
        raise TypeError("bool is not a bencode integer")
    if isinstance(value, int):
        return BencInt(value)
    if isinstance(value, (str, bytes, bytearray, memoryview)):
        return BencString(value)
    raise TypeError(f"Cannot store {type(value).__name__} in a bencode container")


def _existing_values(obj):
    """Ids of the values already referenced from a plain Python structure."""
    found = set()
    stack = [obj]
    while stack:
        current = stack.pop()
        if isinstance(current, BencValue):
            found.add(id(current))
        elif isinstance(current, (list, tuple)):
            stack.extend(current)
        elif isinstance(current, dict):
            stack.extend(current.values())
    return found


class _Container(BencValue):

    def _adopt(self, value):
        value = _wrap(value)
        if value._owner is not None:
            raise ValueError(f"{value!r} already belongs to another container")
        node = self
        while node is not None:
            if node is value:
                raise ValueError("A container cannot be added to itself or its descendants")
            node = node._owner
        value._owner = self
        return value

    @staticmethod
    def _release(value):
        value._owner = None
        return value

    def _abandon(self, source):
        """
        Undoes a failed constructor. Releases every value adopted by this
        container or by containers built along the way from `source`, but
        leaves the contents of values the caller passed in untouched.
        """
        keep = _existing_values(source)
        stack = [self]
        while stack:
            node = stack.pop()
            for child in node._detach_all():
                child._owner = None
                if isinstance(child, _Container) and id(child) not in keep:
                    stack.append(child)

    @staticmethod
    def _of_kind(value, kind):
        if value is not None and value.kind is kind:
            return value
        return None


class BencList(_Container):
    kind = Kind.LIST

    def __init__(self, items=()):
        super().__init__()
        self._items = []
        items = list(items)
        try:
            for item in items:
                self.add(from_python(item))
        except (TypeError, ValueError, OverflowError):
            self._abandon(items)
            raise

    def _detach_all(self):
        items, self._items = self._items, []
        return items

    def add(self, value) -> int:
        """Appends a value (or an int/bytes/str to wrap) and returns the new length."""
        self._items.append(self._adopt(value))
        return len(self._items)

    def add_raw(self, data, length=None) -> int:
        return self.add(BencString.from_raw(data, length))

    def get(self, index):
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def get_int(self, index):
        return self._of_kind(self.get(index), Kind.INTEGER)

    def get_string(self, index):
        return self._of_kind(self.get(index), Kind.STRING)

    def get_list(self, index):
        return self._of_kind(self.get(index), Kind.LIST)

    def get_dict(self, index):
        return self._of_kind(self.get(index), Kind.DICT)

    def remove(self, index):
        """Detaches the element at `index` and returns it, or None if out of range."""
        if 0 <= index < len(self._items):
            return self._release(self._items.pop(index))
        return None

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    def __eq__(self, other):
        if not isinstance(other, BencList):
            return NotImplemented
        return self._items == other._items

    __hash__ = None

    def __repr__(self):
        return f"BencList({self._items!r})"


class BencDict(_Container):
    """
    Keys are raw bytes kept in two parallel lists sorted by key, so lookups
    are a binary search and inserts only shift the tail of the lists.
    """
    kind = Kind.DICT

    def __init__(self, items=None):
        super().__init__()
        self._keys = []
        self._values = []
        if items:
            items = dict(items)
            try:
                for key, value in items.items():
                    self.add(key, from_python(value))
            except (TypeError, ValueError, OverflowError):
                self._abandon(items)
                raise

    def _detach_all(self):
        values = self._values
        self._keys, self._values = [], []
        return values

    def _locate(self, key):
        pos = bisect_left(self._keys, key)
        found = pos < len(self._keys) and self._keys[pos] == key
        return pos, found

    def add(self, key, value) -> int:
        """
        Inserts `value` under `key` at its sorted position.
        An existing entry for `key` is replaced in place and its old value released.
        """
        key = to_bytes(key)
        value = self._adopt(value)
        pos, found = self._locate(key)
        if found:
            self._release(self._values[pos])
            self._values[pos] = value
        else:
            self._keys.insert(pos, key)
            self._values.insert(pos, value)
        return len(self._keys)

    def add_raw(self, key, data, length=None) -> int:
        return self.add(key, BencString.from_raw(data, length))

    def get(self, key):
        pos, found = self._locate(to_bytes(key))
        return self._values[pos] if found else None

    def get_int(self, key):
        return self._of_kind(self.get(key), Kind.INTEGER)

    def get_string(self, key):
        return self._of_kind(self.get(key), Kind.STRING)

    def get_list(self, key):
        return self._of_kind(self.get(key), Kind.LIST)

    def get_dict(self, key):
        return self._of_kind(self.get(key), Kind.DICT)

    def remove(self, key):
        """Detaches the value stored under `key` and returns it, or None if missing."""
        pos, found = self._locate(to_bytes(key))
        if not found:
            return None
        del self._keys[pos]
        return self._release(self._values.pop(pos))

    def keys(self):
        return list(self._keys)

    def values(self):
        return list(self._values)

    def items(self):
        return list(zip(self._keys, self._values))

    def __contains__(self, key):
        return self._locate(to_bytes(key))[1]

    def __len__(self):
        return len(self._keys)

    def __iter__(self):
        return iter(list(self._keys))

    def __eq__(self, other):
        if not isinstance(other, BencDict):
            return NotImplemented
        return self._keys == other._keys and self._values == other._values

    __hash__ = None

    def __repr__(self):
        pairs = ', '.join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"BencDict({{{pairs}}})"


def from_python(obj):
    """Builds a value tree from plain Python objects."""
    if isinstance(obj, BencValue):
        return obj
    if isinstance(obj, (list, tuple)):
        return BencList(obj)
    if isinstance(obj, dict):
        return BencDict(obj)
    return _wrap(obj)


def _shallow(value):
    if value.kind is Kind.INTEGER:
        return value.value
    if value.kind is Kind.STRING:
        return value.raw
    return [] if value.kind is Kind.LIST else {}


def to_python(value):
    """Converts a value tree into ints, bytes, lists and dicts keyed by bytes."""
    result = _shallow(value)
    # Walk containers with an explicit stack so deep trees do not recurse
    stack = [(value, result)]
    while stack:
        node, out = stack.pop()
        if node.kind is Kind.LIST:
            for item in node:
                converted = _shallow(item)
                out.append(converted)
                stack.append((item, converted))
        elif node.kind is Kind.DICT:
            for key, item in node.items():
                converted = _shallow(item)
                out[key] = converted
                stack.append((item, converted))
    return result
