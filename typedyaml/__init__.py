"""
typedyaml - metadata-preserving YAML documents and typed object mapping.

Parsing keeps a side-channel of everything a human chose when writing the
document (comments, explicit tags, quoting, flow or block layout) next to
the values, so documents can be mapped onto typed classes, changed, and
written back with their formatting intact.

Example:
    >>> import typedyaml as ty
    >>> class Server(ty.YamlBase):
    ...     host: str = 'localhost'
    ...     MaxConnections: int = 10
    >>> server = ty.from_yaml('host: example.org  # public name\\n', Server)
    >>> server.get_comment('host')
    'public name'
    >>> server.MaxConnections = 20
    >>> print(ty.to_yaml(server), end='')
    # public name
    host: example.org
    max-connections: 20
"""

from .error import (
    Mark,
    TypedYamlError,
    MarkedTypedYamlError,
    DuplicateKeyError,
    NestingDepthError,
    ScalarFormatError,
    ConverterResolutionError,
    ConverterMismatchError,
    ConverterError,
    UnsupportedNestedTypeError,
)
from .events import (
    CommentEvent,
    parse_events,
    emit_events,
)
from .nodes import (
    ScalarKind,
    Value,
    NullValue,
    ScalarValue,
    MappingValue,
    SequenceValue,
    ValueVisitor,
)
from .metadata import (
    ScalarStyle,
    MappingStyle,
    SequenceStyle,
    PropertyMetadata,
    MetadataStore,
)
from .resolver import parse_scalar
from .composer import DEFAULT_MAX_DEPTH, ComposerError, compose, compose_all
from .typed import YamlBase, PropertyDescriptor, prop, derive_key
from .converter import YamlConverter, register_converter
from .constructor import from_value
from .representer import RepresenterError, to_value
from .serializer import EmitOptions, MetadataSerializer, serialize, emit

__version__ = '0.1.0'


def parse(stream, allow_duplicate_keys=False, max_depth=DEFAULT_MAX_DEPTH):
    """Parse one YAML document into (Value, MetadataStore).

    Args:
        stream: YAML text or a readable file object
        allow_duplicate_keys: Accept mapping keys that differ only by case
        max_depth: Maximum collection nesting

    Raises:
        DuplicateKeyError: keys that differ only by case, unless allowed
        ScalarFormatError: tagged scalar that does not parse as its tag
    """
    return compose(stream, allow_duplicate_keys, max_depth)


def parse_all(stream, allow_duplicate_keys=False, max_depth=DEFAULT_MAX_DEPTH):
    """Parse every document of a stream, yielding (Value, MetadataStore)."""
    return compose_all(stream, allow_duplicate_keys, max_depth)


def from_yaml(stream, cls, max_depth=DEFAULT_MAX_DEPTH):
    """Parse YAML text into an instance of the YamlBase subclass cls.

    Keys differing only by case are accepted when every variant is bound to
    a property with prop(key=...).
    """
    value, metadata = parse(stream, allow_duplicate_keys=True, max_depth=max_depth)
    return from_value(value, cls, metadata)


def to_yaml(data, metadata=None, **kwargs):
    """Write data as YAML text.

    Args:
        data: YamlBase instance, Value tree, or plain data
        metadata: MetadataStore for a Value tree or plain data
        **kwargs: EmitOptions fields (omit_null, emit_tags, mapping_style,
            sequence_style, max_depth, indented_sequences, indent, width,
            allow_unicode, explicit_start)
    """
    return emit(data, None, metadata, **kwargs)


def load(stream, cls, max_depth=DEFAULT_MAX_DEPTH):
    """Load an instance of cls from a file object or text."""
    if hasattr(stream, 'read'):
        stream = stream.read()
    return from_yaml(stream, cls, max_depth)


def dump(data, stream=None, metadata=None, **kwargs):
    """Write data as YAML to stream; returns the text when stream is None."""
    return emit(data, stream, metadata, **kwargs)


__all__ = [
    # Operations
    'parse', 'parse_all', 'parse_scalar',
    'from_yaml', 'from_value', 'to_value',
    'serialize', 'to_yaml', 'load', 'dump',
    'parse_events', 'emit_events',
    # Values
    'ScalarKind', 'Value', 'NullValue', 'ScalarValue', 'MappingValue',
    'SequenceValue', 'ValueVisitor',
    # Metadata
    'ScalarStyle', 'MappingStyle', 'SequenceStyle', 'PropertyMetadata',
    'MetadataStore',
    # Typed classes
    'YamlBase', 'PropertyDescriptor', 'prop', 'derive_key',
    'YamlConverter', 'register_converter',
    # Serializer
    'EmitOptions', 'MetadataSerializer', 'CommentEvent',
    # Errors
    'Mark', 'TypedYamlError', 'MarkedTypedYamlError', 'DuplicateKeyError',
    'NestingDepthError', 'ScalarFormatError', 'ConverterResolutionError',
    'ConverterMismatchError', 'ConverterError', 'UnsupportedNestedTypeError',
    'ComposerError', 'RepresenterError',
    'DEFAULT_MAX_DEPTH',
]
