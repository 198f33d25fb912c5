"""Generic document value tree.

A parsed document is a tree of Value objects: NullValue, ScalarValue,
MappingValue and SequenceValue. Code that needs to branch on the shape of a
value implements a ValueVisitor and calls value.accept(visitor) instead of
chaining isinstance() checks.
"""

import enum


class ScalarKind(enum.Enum):
    """Inferred type of a scalar.

    Integers are classified by the smallest width that holds them even
    though Python ints are unbounded.
    """
    NULL = 'null'
    BOOL = 'bool'
    INT32 = 'int32'
    INT64 = 'int64'
    BIGINT = 'bigint'
    DECIMAL = 'decimal'
    FLOAT = 'float'
    TIMESTAMP = 'timestamp'
    STRING = 'string'


class Value:
    """Base class for document values."""

    id = None

    def accept(self, visitor):
        raise NotImplementedError

    def to_python(self):
        """Convert to plain Python data (dict, list, scalars, None)."""
        return self.accept(PythonBuilder())


class NullValue(Value):
    """Explicit or implied null."""

    id = 'null'

    def accept(self, visitor):
        return visitor.visit_null(self)

    def __eq__(self, other):
        return isinstance(other, NullValue)

    def __hash__(self):
        return hash(None)

    def __repr__(self):
        return 'NullValue()'


class ScalarValue(Value):
    """Leaf value.

    Attributes:
        raw: Source text of the scalar
        value: Inferred Python value (str, bool, int, Decimal, float,
            date, datetime)
        kind: ScalarKind of value
    """

    id = 'scalar'

    def __init__(self, raw, value, kind=ScalarKind.STRING):
        self.raw = raw
        self.value = value
        self.kind = kind

    def accept(self, visitor):
        return visitor.visit_scalar(self)

    def __eq__(self, other):
        if not isinstance(other, ScalarValue):
            return NotImplemented
        return (self.raw, self.value, self.kind) == (other.raw, other.value, other.kind)

    def __hash__(self):
        return hash((self.raw, self.kind))

    def __repr__(self):
        return 'ScalarValue(%r, %r, %s)' % (self.raw, self.value, self.kind.name)


class MappingValue(Value):
    """Ordered list of (key, Value) pairs.

    Keys are compared exactly; a mapping may hold keys that differ only by
    case.
    """

    id = 'mapping'

    def __init__(self, pairs=None):
        self.pairs = list(pairs) if pairs is not None else []

    def accept(self, visitor):
        return visitor.visit_mapping(self)

    def keys(self):
        return [key for key, _ in self.pairs]

    def items(self):
        return list(self.pairs)

    def get(self, key, default=None):
        for k, v in reversed(self.pairs):
            if k == key:
                return v
        return default

    def __contains__(self, key):
        return any(k == key for k, _ in self.pairs)

    def __getitem__(self, key):
        for k, v in reversed(self.pairs):
            if k == key:
                return v
        raise KeyError(key)

    def __len__(self):
        return len(self.pairs)

    def __iter__(self):
        return iter(self.keys())

    def __eq__(self, other):
        if not isinstance(other, MappingValue):
            return NotImplemented
        return self.pairs == other.pairs

    __hash__ = None

    def __repr__(self):
        return 'MappingValue(%r)' % (self.pairs,)


class SequenceValue(Value):
    """Ordered list of Values."""

    id = 'sequence'

    def __init__(self, items=None):
        self.items = list(items) if items is not None else []

    def accept(self, visitor):
        return visitor.visit_sequence(self)

    def __getitem__(self, index):
        return self.items[index]

    def __len__(self):
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __eq__(self, other):
        if not isinstance(other, SequenceValue):
            return NotImplemented
        return self.items == other.items

    __hash__ = None

    def __repr__(self):
        return 'SequenceValue(%r)' % (self.items,)


class ValueVisitor:
    """Double-dispatch target for Value.accept()."""

    def visit_null(self, value):
        raise NotImplementedError

    def visit_scalar(self, value):
        raise NotImplementedError

    def visit_mapping(self, value):
        raise NotImplementedError

    def visit_sequence(self, value):
        raise NotImplementedError


class PythonBuilder(ValueVisitor):
    """Builds plain Python data; the last of exactly-equal keys wins."""

    def visit_null(self, value):
        return None

    def visit_scalar(self, value):
        return value.value

    def visit_mapping(self, value):
        return {key: item.accept(self) for key, item in value.pairs}

    def visit_sequence(self, value):
        return [item.accept(self) for item in value.items]


__all__ = [
    'ScalarKind',
    'Value',
    'NullValue',
    'ScalarValue',
    'MappingValue',
    'SequenceValue',
    'ValueVisitor',
    'PythonBuilder',
]
