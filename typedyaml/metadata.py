"""Metadata side-channel for documents and typed objects.

A MetadataStore holds, per mapping key or sequence index, the formatting
details a human chose when writing the document: comment, explicit tag,
scalar style, and mapping/sequence layout. Child containers get their own
store, reachable through nested(). The store does no validation.
"""

import enum


class _Style(enum.Enum):
    """Enum that also accepts member names, ignoring case, '-' and '_'."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            name = value.replace('-', '').replace('_', '').lower()
            for member in cls:
                if member.name.replace('_', '').lower() == name:
                    return member
        return None


class ScalarStyle(_Style):
    """Scalar quoting style; values are PyYAML style indicators."""
    PLAIN = ''
    SINGLE_QUOTED = "'"
    DOUBLE_QUOTED = '"'
    LITERAL = '|'
    FOLDED = '>'

    @classmethod
    def _missing_(cls, value):
        if value is None:
            return cls.PLAIN
        return super()._missing_(value)

    @property
    def style(self):
        """Style argument for yaml.events.ScalarEvent."""
        return self.value or None

    @property
    def quoted(self):
        return self is not ScalarStyle.PLAIN


class MappingStyle(_Style):
    """Mapping layout."""
    BLOCK = 'block'
    FLOW = 'flow'

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, bool):
            return cls.FLOW if value else cls.BLOCK
        return super()._missing_(value)

    @property
    def flow_style(self):
        return self is MappingStyle.FLOW


class SequenceStyle(_Style):
    """Sequence layout."""
    BLOCK = 'block'
    FLOW = 'flow'

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, bool):
            return cls.FLOW if value else cls.BLOCK
        return super()._missing_(value)

    @property
    def flow_style(self):
        return self is SequenceStyle.FLOW


def _coerce(enum_type, value):
    if value is None or isinstance(value, enum_type):
        return value
    return enum_type(value)


class PropertyMetadata:
    """Metadata of one mapping key or sequence index."""

    __slots__ = ('comment', 'tag', 'scalar_style', 'mapping_style', 'sequence_style')

    def __init__(self, comment=None, tag=None, scalar_style=None,
                 mapping_style=None, sequence_style=None):
        self.comment = comment
        self.tag = tag
        self.scalar_style = scalar_style
        self.mapping_style = mapping_style
        self.sequence_style = sequence_style

    def copy(self):
        return PropertyMetadata(self.comment, self.tag, self.scalar_style,
                                self.mapping_style, self.sequence_style)

    def is_empty(self):
        return all(getattr(self, name) is None for name in self.__slots__)

    def __eq__(self, other):
        if not isinstance(other, PropertyMetadata):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name)
                   for name in self.__slots__)

    __hash__ = None

    def __repr__(self):
        fields = ', '.join('%s=%r' % (name, getattr(self, name))
                           for name in self.__slots__
                           if getattr(self, name) is not None)
        return 'PropertyMetadata(%s)' % fields


class MetadataStore:
    """Path-indexed metadata for one mapping or sequence.

    Entries are keyed by mapping key (str) or sequence index (int). The
    store of a child container is created on first access through
    nested(key).

    Attributes:
        document_mapping_style: Layout of the document root mapping
        document_sequence_style: Layout of the document root sequence
        document_tag: Explicit tag of the document root node
        document_scalar_style: Quoting of a scalar document root
    """

    def __init__(self):
        self._entries = {}
        self._nested = {}
        self.document_mapping_style = None
        self.document_sequence_style = None
        self.document_tag = None
        self.document_scalar_style = None

    def get(self, key):
        """Return the PropertyMetadata for key, or None."""
        return self._entries.get(key)

    def entry(self, key):
        """Return the PropertyMetadata for key, creating it if needed."""
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = PropertyMetadata()
        return entry

    def keys(self):
        return list(self._entries)

    def __contains__(self, key):
        return key in self._entries

    def _field(self, key, name):
        entry = self._entries.get(key)
        return getattr(entry, name) if entry is not None else None

    def get_comment(self, key):
        return self._field(key, 'comment')

    def set_comment(self, key, comment):
        self.entry(key).comment = comment

    def get_tag(self, key):
        return self._field(key, 'tag')

    def set_tag(self, key, tag):
        self.entry(key).tag = tag

    def get_scalar_style(self, key):
        return self._field(key, 'scalar_style')

    def set_scalar_style(self, key, style):
        self.entry(key).scalar_style = _coerce(ScalarStyle, style)

    def get_mapping_style(self, key):
        return self._field(key, 'mapping_style')

    def set_mapping_style(self, key, style):
        self.entry(key).mapping_style = _coerce(MappingStyle, style)

    def get_sequence_style(self, key):
        return self._field(key, 'sequence_style')

    def set_sequence_style(self, key, style):
        self.entry(key).sequence_style = _coerce(SequenceStyle, style)

    def set_document_mapping_style(self, style):
        self.document_mapping_style = _coerce(MappingStyle, style)

    def set_document_sequence_style(self, style):
        self.document_sequence_style = _coerce(SequenceStyle, style)

    def set_document_scalar_style(self, style):
        self.document_scalar_style = _coerce(ScalarStyle, style)

    def document_entry(self):
        """PropertyMetadata describing the document root node, or None."""
        if self.document_tag is None and self.document_scalar_style is None:
            return None
        return PropertyMetadata(tag=self.document_tag,
                                scalar_style=self.document_scalar_style)

    def copy_document(self, source):
        """Copy the document-level fields of another store."""
        self.document_mapping_style = source.document_mapping_style
        self.document_sequence_style = source.document_sequence_style
        self.document_tag = source.document_tag
        self.document_scalar_style = source.document_scalar_style

    def nested(self, key):
        """Return the store of the child container at key, creating it."""
        store = self._nested.get(key)
        if store is None:
            store = self._nested[key] = MetadataStore()
        return store

    def peek_nested(self, key):
        """Return the store of the child container at key, or None."""
        return self._nested.get(key)

    def nested_keys(self):
        return list(self._nested)

    def attach(self, key, store):
        """Install store as the child store at key."""
        if store is None:
            self._nested.pop(key, None)
        else:
            self._nested[key] = store

    def copy_entry(self, source, source_key, key=None):
        """Copy one entry from another store, optionally under a new key."""
        entry = source.get(source_key)
        if entry is not None:
            self._entries[source_key if key is None else key] = entry.copy()

    def is_empty(self):
        return (not any(not e.is_empty() for e in self._entries.values())
                and all(s.is_empty() for s in self._nested.values())
                and self.document_mapping_style is None
                and self.document_sequence_style is None
                and self.document_tag is None
                and self.document_scalar_style is None)

    def __repr__(self):
        return 'MetadataStore(entries=%r, nested=%r)' % (
            self._entries, sorted(self._nested, key=str))


__all__ = [
    'ScalarStyle',
    'MappingStyle',
    'SequenceStyle',
    'PropertyMetadata',
    'MetadataStore',
]
