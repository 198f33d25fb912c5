"""Custom property converters.

A converter is bound to one property with ``prop(converter=...)`` and is
used in both directions instead of the built-in coercion:

    @register_converter
    class SemVerConverter(YamlConverter):
        def can_handle(self, tag, target_type):
            return tag in (None, '!semver')

        def from_yaml(self, data, tag, target_type):
            return SemVer.parse(data)

        def to_yaml(self, value):
            return str(value), '!semver'

A binding is a converter class, a converter instance, or a name. Names are
looked up in the converter registry, then in the module that defines the
owning class. Resolution happens once per property.
"""

import logging
import sys

from .error import ConverterResolutionError

log = logging.getLogger(__name__)


class YamlConverter:
    """Base class for property converters."""

    def can_handle(self, tag, target_type):
        """Whether this converter accepts a value with tag for target_type."""
        return True

    def from_yaml(self, data, tag, target_type):
        """Build the property value from parsed data (scalar, dict or list)."""
        raise NotImplementedError

    def to_yaml(self, value):
        """Return (raw, tag) or just raw for a property value."""
        raise NotImplementedError


yaml_converters = {}


def register_converter(name_or_class=None):
    """Register a converter class under a name.

    Usable bare (``@register_converter``, registered under the class name)
    or with an explicit name (``@register_converter('semver')``).
    """
    def register(cls, name=None):
        check_converter_class(cls, name or cls.__name__)
        yaml_converters[name or cls.__name__] = cls
        return cls

    if isinstance(name_or_class, type):
        return register(name_or_class)
    return lambda cls: register(cls, name_or_class)


def check_converter_class(cls, name):
    for method in ('can_handle', 'from_yaml', 'to_yaml'):
        if not callable(getattr(cls, method, None)):
            raise ConverterResolutionError(
                name, "%r does not implement %s()" % (cls, method))


def converter_name(converter):
    if isinstance(converter, type):
        return converter.__name__
    return type(converter).__name__


def _lookup_name(name, owner):
    if name in yaml_converters:
        return yaml_converters[name]
    if owner is not None:
        module = sys.modules.get(owner.__module__)
        target = module
        for part in name.split('.'):
            target = getattr(target, part, None)
            if target is None:
                break
        if target is not None:
            return target
    return None


def resolve_converter(binding, owner=None):
    """Turn a converter binding into a converter instance.

    Args:
        binding: Converter class, converter instance or registered name
        owner: Class declaring the bound property; its module is searched
            for names missing from the registry

    Raises:
        ConverterResolutionError: unknown name, or an object that does not
            implement the converter methods
    """
    if isinstance(binding, str):
        target = _lookup_name(binding, owner)
        if target is None:
            raise ConverterResolutionError(
                binding, "no converter registered under this name%s" % (
                    " or defined in module %r" % owner.__module__ if owner else ''))
        log.debug("resolved converter %r to %r", binding, target)
        name = binding
    else:
        target = binding
        name = converter_name(binding)
    check_converter_class(target, name)
    if not isinstance(target, type):
        return target
    try:
        return target()
    except TypeError as exc:
        raise ConverterResolutionError(
            name, "cannot create an instance without arguments") from exc


__all__ = [
    'YamlConverter',
    'yaml_converters',
    'register_converter',
    'resolve_converter',
    'converter_name',
]
