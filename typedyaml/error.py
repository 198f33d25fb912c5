"""Error taxonomy for typedyaml.

Every error raised by this package derives from TypedYamlError, which is a
yaml.YAMLError so callers that already catch PyYAML errors keep working.
Errors tied to a source position derive from yaml.MarkedYAMLError and render
the context/problem/mark snippet the same way PyYAML does.

Tokenizer errors (yaml.scanner.ScannerError, yaml.parser.ParserError) come
from the external event source and propagate unchanged.
"""

from yaml.error import YAMLError, MarkedYAMLError, Mark


class TypedYamlError(YAMLError):
    """Base exception for typedyaml errors."""
    pass


class MarkedTypedYamlError(TypedYamlError, MarkedYAMLError):
    """typedyaml error with position marks.

    Attributes:
        context: Description of the parsing context
        context_mark: Mark pointing to the context
        problem: Description of the problem
        problem_mark: Mark pointing to the problem
        note: Additional note about the error
    """

    def __init__(self, context=None, context_mark=None,
                 problem=None, problem_mark=None, note=None):
        MarkedYAMLError.__init__(self, context, context_mark,
                                 problem, problem_mark, note)

    def __str__(self):
        return MarkedYAMLError.__str__(self)


class DuplicateKeyError(MarkedTypedYamlError):
    """A mapping holds keys that only differ by case.

    Attributes:
        keys: The colliding keys, in document order
        path: Dotted path of the mapping holding them ('' for the root)
        unmapped: Keys lacking an explicit key override (typed mapping only)
    """

    def __init__(self, keys, path='', unmapped=None, problem_mark=None):
        self.keys = list(keys)
        self.path = path
        self.unmapped = list(unmapped) if unmapped is not None else None
        where = path or '<root>'
        if self.unmapped is None:
            problem = "found case-insensitive duplicate keys %s in mapping at %r" % (
                ', '.join(repr(k) for k in self.keys), where)
        else:
            problem = ("mapping at %r contains case-insensitive duplicate keys %s; "
                       "unmapped keys: %s" % (
                           where,
                           ', '.join(repr(k) for k in self.keys),
                           ', '.join(repr(k) for k in self.unmapped)))
        note = ("To prevent data loss every variant must be bound to its own "
                "property with an explicit key override, e.g. prop(key=%r)."
                % self.keys[-1])
        super().__init__(None, None, problem, problem_mark, note)


class NestingDepthError(MarkedTypedYamlError):
    """Document nesting exceeded the configured parse depth."""

    def __init__(self, max_depth, problem_mark=None):
        self.max_depth = max_depth
        super().__init__(
            "while parsing a document", None,
            "nesting exceeds the maximum depth of %d" % max_depth,
            problem_mark)


class ScalarFormatError(MarkedTypedYamlError):
    """A tagged scalar whose text cannot be parsed as its tag demands."""

    def __init__(self, tag, raw_value, problem_mark=None):
        self.tag = tag
        self.raw_value = raw_value
        super().__init__(
            None, None,
            "value %r cannot be parsed as %s (tag: %s)" % (
                raw_value, _tag_kind(tag), tag),
            problem_mark)


class ConverterResolutionError(TypedYamlError):
    """A converter name or class cannot be resolved to a usable converter."""

    def __init__(self, name, reason=None):
        self.name = name
        self.reason = reason
        message = "cannot resolve converter %r" % name
        if reason:
            message += ": %s" % reason
        super().__init__(message)


class ConverterMismatchError(TypedYamlError):
    """A bound converter declined the tag/type pair through can_handle()."""

    def __init__(self, converter_name, tag, target_type, property_name=None):
        self.converter_name = converter_name
        self.tag = tag
        self.target_type = target_type
        self.property_name = property_name
        super().__init__(
            "converter %r%s cannot handle tag %r with target type %r; "
            "its can_handle() returned False" % (
                converter_name,
                " bound to property %r" % property_name if property_name else '',
                tag if tag is not None else '(none)',
                _type_name(target_type)))


class ConverterError(TypedYamlError):
    """A bound converter raised while converting a property value."""

    def __init__(self, converter_name, property_name, value, direction):
        self.converter_name = converter_name
        self.property_name = property_name
        self.value = value
        self.direction = direction
        super().__init__(
            "converter %r failed to %s property %r with value %r" % (
                converter_name, direction, property_name, value))


class UnsupportedNestedTypeError(TypedYamlError):
    """Mapping data targets a property whose type is not a typed class."""

    def __init__(self, property_name, type, owner=None):
        self.property = property_name
        self.type = type
        self.owner = owner
        super().__init__(
            "property %r of type %r%s must be a YamlBase subclass to be "
            "populated from a mapping; use a YamlBase subclass, a plain "
            "dict, or a scalar type" % (
                property_name, _type_name(type),
                " in class %r" % _type_name(owner) if owner is not None else ''))


def _type_name(tp):
    return getattr(tp, '__qualname__', None) or getattr(tp, '__name__', None) or repr(tp)


def _tag_kind(tag):
    if tag.startswith('tag:yaml.org,2002:'):
        return {
            'int': 'an integer',
            'float': 'a float',
            'bool': 'a boolean',
            'timestamp': 'a timestamp',
        }.get(tag[len('tag:yaml.org,2002:'):], tag)
    return tag


__all__ = [
    'Mark',
    'TypedYamlError',
    'MarkedTypedYamlError',
    'DuplicateKeyError',
    'NestingDepthError',
    'ScalarFormatError',
    'ConverterResolutionError',
    'ConverterMismatchError',
    'ConverterError',
    'UnsupportedNestedTypeError',
]
