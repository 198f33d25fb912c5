"""Typed mapper, document to object direction.

from_value() turns a parsed mapping (or an empty document) into an instance
of a YamlBase subclass:

1. the mapping is converted to a plain dict;
2. keys differing only by case must all be bound by prop(key=...);
3. the instance is created through the class registry;
4. metadata of the top-level properties is copied onto the instance, so
   converters can read the captured tags;
5. properties are populated through YamlBase.from_dict();
6. metadata of nested typed values is copied once they exist.

Scalar coercion to the declared property type is best effort: a value that
cannot be coerced is assigned unchanged.
"""

import datetime
import decimal
import enum
import logging

from .converter import converter_name
from .error import (
    TypedYamlError, DuplicateKeyError, ConverterMismatchError,
    ConverterError, UnsupportedNestedTypeError,
)
from .nodes import NullValue, MappingValue
from .resolver import construct_timestamp, render_scalar
from .typed import (
    YamlBase, create_instance, is_typed_class, is_plain_class,
    sequence_type, unwrap_optional,
)

log = logging.getLogger(__name__)


def from_value(value, cls, metadata=None):
    """Build an instance of cls from a parsed Value.

    An empty document (null root) gives an instance with every property at
    its default.

    Args:
        value: MappingValue or NullValue from typedyaml.parse()
        cls: YamlBase subclass
        metadata: MetadataStore from the same parse call

    Raises:
        TypeError: cls is not a YamlBase subclass, or value is a scalar or
            sequence
        DuplicateKeyError: keys differing only by case without explicit keys
        ConverterMismatchError, ConverterError, ConverterResolutionError,
        UnsupportedNestedTypeError: see typedyaml.error
    """
    if not is_typed_class(cls):
        raise TypeError("%r is not a YamlBase subclass" % (cls,))
    if isinstance(value, NullValue):
        return construct_typed(cls, {}, metadata)
    if not isinstance(value, MappingValue):
        raise TypeError("cannot build %s from a %s document root; a mapping is required"
                        % (cls.__name__, getattr(value, 'id', type(value).__name__)))
    return construct_typed(cls, value.to_python(), metadata)


def construct_typed(cls, data, metadata=None, path=''):
    check_duplicate_keys(data, cls, path)
    instance = create_instance(cls)
    copy_metadata(metadata, instance)
    instance.from_dict(data, metadata)
    copy_nested_metadata(metadata, instance)
    return instance


def check_duplicate_keys(data, cls, path=''):
    """Reject keys differing only by case unless each is an explicit key."""
    groups = {}
    for key in data:
        groups.setdefault(str(key).lower(), []).append(key)
    explicit = {d.key for d in cls.yaml_properties() if d.explicit_key}
    for keys in groups.values():
        if len(keys) > 1:
            unmapped = [key for key in keys if key not in explicit]
            if unmapped:
                raise DuplicateKeyError(keys, path, unmapped=unmapped)


def copy_metadata(source, instance):
    """Copy the metadata of top-level properties from source onto instance.

    source is keyed by document key, the instance store by property name.
    Stores of plain dict and list properties are grafted as they are.
    """
    if source is None:
        return
    store = instance.yaml_metadata
    for descriptor in type(instance).yaml_properties():
        store.copy_entry(source, descriptor.key, descriptor.name)
        if not is_typed_class(unwrap_optional(descriptor.type)):
            nested = source.peek_nested(descriptor.key)
            if nested is not None:
                store.attach(descriptor.name, nested)
    if source.document_mapping_style is not None:
        store.document_mapping_style = source.document_mapping_style
    if source.document_tag is not None:
        store.document_tag = source.document_tag


def copy_nested_metadata(source, instance):
    """Copy metadata onto typed values held by the properties of instance."""
    if source is None:
        return
    for descriptor in type(instance).yaml_properties():
        child_source = source.peek_nested(descriptor.key)
        if child_source is None:
            continue
        value = getattr(instance, descriptor.name, None)
        if isinstance(value, YamlBase):
            apply_metadata(child_source, value)
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                item_source = child_source.peek_nested(index)
                if isinstance(item, YamlBase) and item_source is not None:
                    apply_metadata(item_source, item)


def apply_metadata(source, instance):
    copy_metadata(source, instance)
    copy_nested_metadata(source, instance)


def populate(instance, data, metadata=None):
    """Default YamlBase.from_dict() implementation."""
    cls = type(instance)
    for descriptor in cls.yaml_properties():
        if descriptor.key not in data:
            continue
        raw = data[descriptor.key]
        if raw is None:
            setattr(instance, descriptor.name, None)
            continue
        converter = descriptor.get_converter()
        if converter is not None:
            setattr(instance, descriptor.name,
                    convert_property(instance, descriptor, converter, raw))
            continue
        setattr(instance, descriptor.name,
                construct_property(instance, descriptor, raw, metadata))


def convert_property(instance, descriptor, converter, raw):
    tag = instance.yaml_metadata.get_tag(descriptor.name)
    name = converter_name(converter)
    if not converter.can_handle(tag, descriptor.type):
        raise ConverterMismatchError(name, tag, descriptor.type, descriptor.name)
    try:
        return converter.from_yaml(raw, tag, descriptor.type)
    except TypedYamlError:
        raise
    except Exception as exc:
        raise ConverterError(name, descriptor.name, raw, 'deserialize') from exc


def construct_property(instance, descriptor, raw, metadata):
    cls = type(instance)
    target = unwrap_optional(descriptor.type)
    nested = metadata.peek_nested(descriptor.key) if metadata is not None else None

    if isinstance(raw, dict):
        if is_typed_class(target):
            return construct_typed(target, raw, nested, descriptor.key)
        if is_plain_class(target):
            raise UnsupportedNestedTypeError(descriptor.name, target, cls)
        return raw

    container = sequence_type(target)
    if container is not None and isinstance(raw, list):
        factory, element = container
        if is_typed_class(element):
            items = []
            for index, item in enumerate(raw):
                if isinstance(item, dict):
                    item_source = nested.peek_nested(index) if nested is not None else None
                    items.append(construct_typed(
                        element, item, item_source,
                        '%s[%d]' % (descriptor.key, index)))
                else:
                    log.debug("%s.%s[%d]: expected a mapping for %s, found %r",
                              cls.__name__, descriptor.name, index,
                              element.__name__, item)
                    items.append(None)
            return factory(items)
        if is_plain_class(element) and raw and isinstance(raw[0], dict):
            raise UnsupportedNestedTypeError(descriptor.name, target, cls)
        return factory([coerce_scalar(item, element) for item in raw])

    return coerce_scalar(raw, target)


def _to_bool(value):
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', 'false'):
            return lowered == 'true'
        raise ValueError("not a boolean: %r" % value)
    if isinstance(value, (int, decimal.Decimal, float)):
        return bool(value)
    raise TypeError("cannot convert %s to bool" % type(value).__name__)


def _to_int(value):
    if isinstance(value, str):
        return int(value.strip())
    if isinstance(value, (decimal.Decimal, float)):
        return int(decimal.Decimal(value).to_integral_value(decimal.ROUND_HALF_EVEN))
    if isinstance(value, int):
        return int(value)
    raise TypeError("cannot convert %s to int" % type(value).__name__)


def _to_float(value):
    if isinstance(value, (str, int, float, decimal.Decimal)):
        return float(value)
    raise TypeError("cannot convert %s to float" % type(value).__name__)


def _to_decimal(value):
    if isinstance(value, float):
        return decimal.Decimal(repr(value))
    if isinstance(value, (str, int, decimal.Decimal)) and not isinstance(value, bool):
        try:
            return decimal.Decimal(value.strip() if isinstance(value, str) else value)
        except decimal.InvalidOperation as exc:
            raise ValueError("not a decimal: %r" % value) from exc
    raise TypeError("cannot convert %s to Decimal" % type(value).__name__)


def _to_str(value):
    if isinstance(value, (dict, list)):
        raise TypeError("cannot convert %s to str" % type(value).__name__)
    return render_scalar(value)


def _to_datetime(value):
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        result = construct_timestamp(value.strip())
        if result is not None:
            return _to_datetime(result)
        raise ValueError("not a timestamp: %r" % value)
    raise TypeError("cannot convert %s to datetime" % type(value).__name__)


def _to_date(value):
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        result = construct_timestamp(value.strip())
        if result is not None:
            return _to_date(result)
        raise ValueError("not a date: %r" % value)
    raise TypeError("cannot convert %s to date" % type(value).__name__)


scalar_coercions = {
    bool: _to_bool,
    int: _to_int,
    float: _to_float,
    decimal.Decimal: _to_decimal,
    str: _to_str,
    datetime.datetime: _to_datetime,
    datetime.date: _to_date,
}


def coerce_scalar(value, target):
    """Coerce value to target, or return it unchanged when that fails."""
    if value is None or not isinstance(target, type) or target is object:
        return value
    if type(value) is target:
        return value
    coercion = scalar_coercions.get(target)
    try:
        if coercion is not None:
            return coercion(value)
        if issubclass(target, enum.Enum):
            try:
                return target(value)
            except ValueError:
                return target[value]
        if isinstance(value, target):
            return value
        if issubclass(target, (dict, list, tuple, set, YamlBase)):
            raise TypeError("a %s is not a scalar" % target.__name__)
        return target(value)
    except (TypeError, ValueError, KeyError, ArithmeticError) as exc:
        log.debug("cannot coerce %r to %s (%s); assigning it unchanged",
                  value, target.__name__, exc)
        return value


__all__ = [
    'from_value',
    'construct_typed',
    'check_duplicate_keys',
    'copy_metadata',
    'copy_nested_metadata',
    'apply_metadata',
    'populate',
    'coerce_scalar',
]
