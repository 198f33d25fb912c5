"""Typed mapper, object to document direction.

ValueRepresenter turns typed instances, plain Python data and Value trees
into a Value tree plus a MetadataStore keyed by document key, ready for the
serializer. Typed instances contribute the metadata held on each instance;
converters bound to properties run here and the tags they return are
recorded on the instance.
"""

import datetime
import decimal
import enum
import logging

from .converter import converter_name
from .error import TypedYamlError, ConverterError
from .metadata import MetadataStore
from .nodes import (
    Value, NullValue, ScalarValue, MappingValue, SequenceValue, ValueVisitor,
)
from .resolver import render_scalar, value_kind
from .typed import YamlBase

log = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100


class RepresenterError(TypedYamlError):
    pass


def represent_properties(instance):
    """Yield (descriptor, value) for each property, after converters.

    A tag returned by a converter's to_yaml() is stored as the tag of the
    property on the instance.
    """
    for descriptor in type(instance).yaml_properties():
        value = getattr(instance, descriptor.name, None)
        converter = descriptor.get_converter()
        if converter is not None and value is not None:
            try:
                result = converter.to_yaml(value)
            except TypedYamlError:
                raise
            except Exception as exc:
                raise ConverterError(converter_name(converter), descriptor.name,
                                     value, 'serialize') from exc
            if isinstance(result, tuple) and len(result) == 2:
                value, tag = result
            else:
                value, tag = result, None
            if tag is not None:
                instance.yaml_metadata.set_tag(descriptor.name, tag)
        yield descriptor, value


def represent_dict(instance):
    """Plain dict of a typed instance keyed by document key."""
    return {descriptor.key: _plain(value)
            for descriptor, value in represent_properties(instance)}


def _plain(value):
    if isinstance(value, YamlBase):
        return value.to_dict()
    if isinstance(value, Value):
        return value.to_python()
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


class ValueDispatch(ValueVisitor):
    """Routes a Value tree back through a ValueRepresenter."""

    def __init__(self, representer, source, depth):
        self.representer = representer
        self.source = source
        self.depth = depth

    def visit_null(self, value):
        return value, None

    def visit_scalar(self, value):
        return value, None

    def visit_mapping(self, value):
        return self.representer.represent_pairs(value.pairs, self.source, self.depth)

    def visit_sequence(self, value):
        return self.representer.represent_items(value.items, self.source, self.depth)


class ValueRepresenter:
    """Builds (Value, MetadataStore) pairs.

    Collections nested deeper than max_depth (the root is depth 1) are
    replaced with empty ones.
    """

    yaml_representers = {}
    yaml_multi_representers = {}

    def __init__(self, max_depth=DEFAULT_MAX_DEPTH):
        self.max_depth = max_depth

    @classmethod
    def add_representer(cls, data_type, representer):
        """Add a representer for a specific type."""
        if 'yaml_representers' not in cls.__dict__:
            cls.yaml_representers = cls.yaml_representers.copy()
        cls.yaml_representers[data_type] = representer

    @classmethod
    def add_multi_representer(cls, data_type, representer):
        """Add a representer for a type and its subclasses."""
        if 'yaml_multi_representers' not in cls.__dict__:
            cls.yaml_multi_representers = cls.yaml_multi_representers.copy()
        cls.yaml_multi_representers[data_type] = representer

    def represent(self, data, metadata=None):
        """Return (Value, MetadataStore) for data.

        metadata, when given, describes the root of data: a store keyed by
        property name for a typed instance, by key or index otherwise.
        """
        if isinstance(data, YamlBase):
            value, store = self.represent_typed(data, 1, metadata)
        else:
            value, store = self.represent_data(data, metadata, 1)
            if store is None:
                store = MetadataStore()
            if metadata is not None:
                store.copy_document(metadata)
        return value, store

    def represent_data(self, data, source, depth):
        data_types = type(data).__mro__
        if data_types[0] in self.yaml_representers:
            return self.yaml_representers[data_types[0]](self, data, source, depth)
        for data_type in data_types:
            if data_type in self.yaml_multi_representers:
                return self.yaml_multi_representers[data_type](self, data, source, depth)
        raise RepresenterError("cannot represent an object: %r" % (data,))

    def depth_exceeded(self, depth):
        if depth > self.max_depth:
            log.debug("depth %d exceeds max_depth %d; writing an empty collection",
                      depth, self.max_depth)
            return True
        return False

    def represent_typed(self, data, depth, source=None):
        if self.depth_exceeded(depth):
            return MappingValue(), None
        if source is None:
            source = data.yaml_metadata
        store = MetadataStore()
        store.copy_document(source)
        pairs = []
        for descriptor, value in represent_properties(data):
            store.copy_entry(source, descriptor.name, descriptor.key)
            child, child_store = self.represent_data(
                value, source.peek_nested(descriptor.name), depth + 1)
            if child_store is not None:
                store.attach(descriptor.key, child_store)
            pairs.append((descriptor.key, child))
        return MappingValue(pairs), store

    def represent_pairs(self, pairs, source, depth):
        if self.depth_exceeded(depth):
            return MappingValue(), None
        store = MetadataStore()
        result = []
        for key, item in pairs:
            text = key if isinstance(key, str) else render_scalar(key)
            nested = None
            if source is not None:
                store.copy_entry(source, key, text)
                nested = source.peek_nested(key)
            child, child_store = self.represent_data(item, nested, depth + 1)
            if child_store is not None:
                store.attach(text, child_store)
            result.append((text, child))
        return MappingValue(result), store

    def represent_items(self, items, source, depth):
        if self.depth_exceeded(depth):
            return SequenceValue(), None
        store = MetadataStore()
        result = []
        for index, item in enumerate(items):
            nested = None
            if source is not None:
                store.copy_entry(source, index)
                nested = source.peek_nested(index)
            child, child_store = self.represent_data(item, nested, depth + 1)
            if child_store is not None:
                store.attach(index, child_store)
            result.append(child)
        return SequenceValue(result), store

    def represent_none(self, data, source, depth):
        return NullValue(), None

    def represent_scalar(self, data, source, depth):
        return ScalarValue(render_scalar(data), data, value_kind(data)), None

    def represent_enum(self, data, source, depth):
        return self.represent_data(data.value, source, depth)

    def represent_dict(self, data, source, depth):
        return self.represent_pairs(data.items(), source, depth)

    def represent_list(self, data, source, depth):
        return self.represent_items(data, source, depth)

    def represent_yaml_base(self, data, source, depth):
        return self.represent_typed(data, depth)

    def represent_value(self, data, source, depth):
        return data.accept(ValueDispatch(self, source, depth))


ValueRepresenter.add_representer(type(None), ValueRepresenter.represent_none)
for _scalar_type in (str, bool, int, float, decimal.Decimal, datetime.date,
                     datetime.datetime):
    ValueRepresenter.add_representer(_scalar_type, ValueRepresenter.represent_scalar)
ValueRepresenter.add_representer(dict, ValueRepresenter.represent_dict)
ValueRepresenter.add_representer(list, ValueRepresenter.represent_list)
ValueRepresenter.add_representer(tuple, ValueRepresenter.represent_list)
ValueRepresenter.add_multi_representer(dict, ValueRepresenter.represent_dict)
ValueRepresenter.add_multi_representer(list, ValueRepresenter.represent_list)
ValueRepresenter.add_multi_representer(YamlBase, ValueRepresenter.represent_yaml_base)
ValueRepresenter.add_multi_representer(Value, ValueRepresenter.represent_value)
ValueRepresenter.add_multi_representer(enum.Enum, ValueRepresenter.represent_enum)
del _scalar_type


def to_value(data, max_depth=DEFAULT_MAX_DEPTH):
    """Value tree for a typed instance or plain data."""
    return ValueRepresenter(max_depth).represent(data)[0]


__all__ = [
    'RepresenterError',
    'ValueRepresenter',
    'ValueDispatch',
    'represent_properties',
    'represent_dict',
    'to_value',
]
