"""Typed YAML classes.

Subclass YamlBase and annotate the properties in document order:

    class Server(YamlBase):
        host: str = 'localhost'
        MaxConnections: int = 10
        url: str = prop(key='URL')
        version: SemVer = prop(converter='SemVerConverter')

Each annotated name (not starting with '_') is a property. Its document key
is the explicit ``prop(key=...)`` or is derived from the name
(``MaxConnections`` -> ``max-connections``). Base class properties come
first.

Every YamlBase subclass is registered by its ``module.QualName`` identifier
so instances can be created by the typed mapper without arguments.
"""

import collections.abc
import copy
import datetime
import decimal
import enum
import types
import typing

from .converter import resolve_converter
from .metadata import MetadataStore

SCALAR_TYPES = (str, bool, int, float, decimal.Decimal, datetime.date,
                datetime.datetime)

yaml_classes = {}


def derive_key(name):
    """Document key for a property without an explicit key.

    A '-' goes before every upper-case letter except the first, '_' becomes
    '-', and the result is lower-cased: AppName and app_name both give
    app-name.
    """
    chars = []
    for index, ch in enumerate(name):
        if ch == '_':
            if chars and chars[-1] != '-':
                chars.append('-')
        elif ch.isupper() and index > 0 and chars and chars[-1] != '-':
            chars.append('-')
            chars.append(ch)
        else:
            chars.append(ch)
    return ''.join(chars).strip('-').lower()


def type_id(cls):
    return '%s.%s' % (cls.__module__, cls.__qualname__)


def lookup_class(identifier):
    """Return the YamlBase subclass registered under identifier."""
    return yaml_classes[identifier]


def create_instance(cls):
    """Create an instance through the class registry."""
    factory = yaml_classes.get(type_id(cls), cls)
    return factory()


class PropertySpec:
    """Options given with prop(); replaced by the default on the class."""

    def __init__(self, key=None, converter=None, default=None):
        self.key = key
        self.converter = converter
        self.default = default


def prop(key=None, converter=None, default=None):
    """Declare property options.

    Args:
        key: Exact document key, bypassing the derived key
        converter: Converter class, instance or registered name
        default: Value of the property on a new instance
    """
    return PropertySpec(key, converter, default)


class PropertyDescriptor:
    """One property of a typed class.

    Attributes:
        name: Python attribute name
        key: Document key
        explicit_key: True when key came from prop(key=...)
        type: Declared type (annotation)
        converter_binding: Converter binding from prop(converter=...)
        owner: Class that declares the property
    """

    def __init__(self, name, type, owner, key=None, converter=None):
        self.name = name
        self.type = type
        self.owner = owner
        self.explicit_key = key is not None
        self.key = key if key is not None else derive_key(name)
        self.converter_binding = converter
        self._converter = None

    def get_converter(self):
        """Bound converter instance, resolved on first use; None if unbound."""
        if self.converter_binding is None:
            return None
        if self._converter is None:
            self._converter = resolve_converter(self.converter_binding, self.owner)
        return self._converter

    def __repr__(self):
        return 'PropertyDescriptor(%r, key=%r)' % (self.name, self.key)


class YamlBaseMeta(type):
    """Metaclass for YamlBase that registers classes and collects prop() specs."""

    def __init__(cls, name, bases, kwds):
        super().__init__(name, bases, kwds)
        specs = {}
        for attr, value in kwds.items():
            if isinstance(value, PropertySpec):
                specs[attr] = value
                setattr(cls, attr, value.default)
        cls._yaml_specs = specs
        cls._yaml_property_cache = None
        yaml_classes[type_id(cls)] = cls


def _find_spec(cls, name):
    for klass in cls.__mro__:
        specs = klass.__dict__.get('_yaml_specs')
        if specs and name in specs:
            return klass, specs[name]
    return cls, None


def _owner_of(cls, name):
    for klass in reversed(cls.__mro__):
        if name in klass.__dict__.get('__annotations__', {}):
            return klass
    return cls


def build_properties(cls):
    descriptors = []
    hints = typing.get_type_hints(cls)
    for name, annotation in hints.items():
        if name.startswith('_') or typing.get_origin(annotation) is typing.ClassVar:
            continue
        owner, spec = _find_spec(cls, name)
        if spec is None:
            owner = _owner_of(cls, name)
            descriptors.append(PropertyDescriptor(name, annotation, owner))
        else:
            descriptors.append(PropertyDescriptor(
                name, annotation, owner, spec.key, spec.converter))
    return tuple(descriptors)


class YamlBase(metaclass=YamlBaseMeta):
    """Base class for typed YAML objects.

    Instances carry a MetadataStore keyed by property name, reachable
    through the get_*/set_* accessors. Keyword arguments set properties.
    """

    def __init__(self, **kwargs):
        cls = type(self)
        names = set()
        for descriptor in cls.yaml_properties():
            names.add(descriptor.name)
            setattr(self, descriptor.name,
                    copy.copy(getattr(cls, descriptor.name, None)))
        for name, value in kwargs.items():
            if name not in names:
                raise TypeError("%s() got an unexpected keyword argument %r"
                                % (cls.__name__, name))
            setattr(self, name, value)

    @classmethod
    def yaml_properties(cls):
        """Ordered PropertyDescriptor tuple of the class."""
        properties = cls.__dict__.get('_yaml_property_cache')
        if properties is None:
            properties = build_properties(cls)
            cls._yaml_property_cache = properties
        return properties

    @classmethod
    def yaml_property(cls, name):
        """Descriptor for a property name or document key."""
        for descriptor in cls.yaml_properties():
            if descriptor.name == name:
                return descriptor
        for descriptor in cls.yaml_properties():
            if descriptor.key == name:
                return descriptor
        raise AttributeError("%s has no YAML property %r" % (cls.__name__, name))

    @property
    def yaml_metadata(self):
        """MetadataStore of this instance, keyed by property name."""
        store = self.__dict__.get('_yaml_metadata')
        if store is None:
            store = self.__dict__['_yaml_metadata'] = MetadataStore()
        return store

    @yaml_metadata.setter
    def yaml_metadata(self, store):
        self.__dict__['_yaml_metadata'] = store

    def from_dict(self, data, metadata=None):
        """Populate properties from a plain dict.

        Override to customize population; the default applies converters,
        builds nested typed values and coerces scalars.

        Args:
            data: Plain dict as produced from a parsed mapping
            metadata: MetadataStore of the mapping (keyed by document key)
        """
        from .constructor import populate
        populate(self, data, metadata)

    def to_dict(self):
        """Plain dict of document keys to values, after converters."""
        from .representer import represent_dict
        return represent_dict(self)

    def _key(self, name):
        return type(self).yaml_property(name).name

    def get_comment(self, name):
        return self.yaml_metadata.get_comment(self._key(name))

    def set_comment(self, name, comment):
        self.yaml_metadata.set_comment(self._key(name), comment)

    def get_tag(self, name):
        return self.yaml_metadata.get_tag(self._key(name))

    def set_tag(self, name, tag):
        self.yaml_metadata.set_tag(self._key(name), tag)

    def get_scalar_style(self, name):
        return self.yaml_metadata.get_scalar_style(self._key(name))

    def set_scalar_style(self, name, style):
        self.yaml_metadata.set_scalar_style(self._key(name), style)

    def get_mapping_style(self, name):
        return self.yaml_metadata.get_mapping_style(self._key(name))

    def set_mapping_style(self, name, style):
        self.yaml_metadata.set_mapping_style(self._key(name), style)

    def get_sequence_style(self, name):
        return self.yaml_metadata.get_sequence_style(self._key(name))

    def set_sequence_style(self, name, style):
        self.yaml_metadata.set_sequence_style(self._key(name), style)

    def get_document_mapping_style(self):
        return self.yaml_metadata.document_mapping_style

    def set_document_mapping_style(self, style):
        self.yaml_metadata.set_document_mapping_style(style)

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return all(getattr(self, d.name, None) == getattr(other, d.name, None)
                   for d in type(self).yaml_properties())

    __hash__ = None

    def __repr__(self):
        return '%s(%s)' % (type(self).__name__, ', '.join(
            '%s=%r' % (d.name, getattr(self, d.name, None))
            for d in type(self).yaml_properties()))


# Type helpers used by the mapper.

def unwrap_optional(tp):
    """X for Optional[X]; tp otherwise."""
    if typing.get_origin(tp) in (typing.Union, types.UnionType):
        args = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def is_typed_class(tp):
    return isinstance(tp, type) and issubclass(tp, YamlBase)


def is_plain_class(tp):
    """A user class the mapper cannot build from a mapping."""
    return (isinstance(tp, type) and tp is not object
            and not issubclass(tp, YamlBase)
            and not issubclass(tp, SCALAR_TYPES + (dict, list, tuple, set,
                                                   enum.Enum)))


def sequence_type(tp):
    """(container, element type) for list-like types, None otherwise.

    The element type is None when the annotation does not give one.
    """
    if tp in (list, tuple):
        return tp, None
    origin = typing.get_origin(tp)
    if origin in (list, collections.abc.Sequence, collections.abc.MutableSequence):
        args = typing.get_args(tp)
        return list, unwrap_optional(args[0]) if args else None
    if origin is tuple:
        args = typing.get_args(tp)
        if len(args) == 2 and args[1] is Ellipsis:
            return tuple, unwrap_optional(args[0])
        return tuple, None
    return None


__all__ = [
    'derive_key',
    'type_id',
    'lookup_class',
    'create_instance',
    'yaml_classes',
    'prop',
    'PropertySpec',
    'PropertyDescriptor',
    'YamlBaseMeta',
    'YamlBase',
    'unwrap_optional',
    'is_typed_class',
    'is_plain_class',
    'sequence_type',
]
