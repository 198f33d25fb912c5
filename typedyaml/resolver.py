"""Scalar type inference and tag rules.

parse_scalar() decides what Python value a scalar stands for, given its
text, its explicit tag and its quoting style. The order is:

1. plain '', '~' or any spelling of 'null' is null;
2. an explicit standard tag decides the type and must parse;
3. quoted, literal and folded scalars are strings;
4. plain scalars try bool, int, decimal, then timestamp (only when the
   text contains 'T' or '-'); anything else stays a string. A number in
   exponent notation is an int when its value is integral ('1e3' is 1000).

The emitting side uses runtime_tag() and should_emit_tag() to decide which
stored tags are still true for the value being written.
"""

import datetime
import decimal
import re

from .error import ScalarFormatError
from .metadata import ScalarStyle
from .nodes import NullValue, ScalarValue, ScalarKind

TAG_PREFIX = 'tag:yaml.org,2002:'

NULL_TAG = TAG_PREFIX + 'null'
BOOL_TAG = TAG_PREFIX + 'bool'
INT_TAG = TAG_PREFIX + 'int'
FLOAT_TAG = TAG_PREFIX + 'float'
STR_TAG = TAG_PREFIX + 'str'
TIMESTAMP_TAG = TAG_PREFIX + 'timestamp'
MAP_TAG = TAG_PREFIX + 'map'
SEQ_TAG = TAG_PREFIX + 'seq'

NON_SPECIFIC_TAG = '!'

INT32_RANGE = (-2 ** 31, 2 ** 31 - 1)
INT64_RANGE = (-2 ** 63, 2 ** 63 - 1)

NULL_VALUES = ('', '~')

INT_RE = re.compile(r'^[-+]?[0-9]+$')
DECIMAL_RE = re.compile(r'''^[-+]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)
                    (?P<exponent>[eE][-+]?[0-9]+)?$''', re.X)

# Integral exponent notation wider than this stays a Decimal.
MAX_EXPONENT_INT_DIGITS = 4300
TAGGED_INT_RE = re.compile(r'''^(?:[-+]?0b[0-1_]+
                    |[-+]?0o?[0-7_]+
                    |[-+]?[0-9_]+
                    |[-+]?0x[0-9a-fA-F_]+)$''', re.X)
TIMESTAMP_RE = re.compile(
    r'''^(?P<year>[0-9][0-9][0-9][0-9])
        -(?P<month>[0-9][0-9]?)
        -(?P<day>[0-9][0-9]?)
        (?:(?:[Tt]|[ \t]+)
        (?P<hour>[0-9][0-9]?)
        :(?P<minute>[0-9][0-9])
        :(?P<second>[0-9][0-9])
        (?:\.(?P<fraction>[0-9]*))?
        (?:[ \t]*(?P<tz>Z|(?P<tz_sign>[-+])(?P<tz_hour>[0-9][0-9]?)
        (?::(?P<tz_minute>[0-9][0-9]))?))?)?$''', re.X)


def is_standard_tag(tag):
    """True for the tag:yaml.org,2002: family (including the !! shorthand)."""
    return tag is not None and normalize_tag(tag).startswith(TAG_PREFIX)


def normalize_tag(tag):
    """Expand the !! shorthand to the full tag:yaml.org,2002: form."""
    if tag is not None and tag.startswith('!!'):
        return TAG_PREFIX + tag[2:]
    return tag


def int_kind(value):
    """Smallest integer width that holds value."""
    if INT32_RANGE[0] <= value <= INT32_RANGE[1]:
        return ScalarKind.INT32
    if INT64_RANGE[0] <= value <= INT64_RANGE[1]:
        return ScalarKind.INT64
    return ScalarKind.BIGINT


def is_null(raw, style=None):
    style = ScalarStyle(style)
    return style is ScalarStyle.PLAIN and (raw in NULL_VALUES or raw.lower() == 'null')


def parse_scalar(raw, tag=None, style=None, mark=None):
    """Infer the value of a scalar.

    Args:
        raw: Scalar text as written (without quotes)
        tag: Full tag from the event, or None
        style: ScalarStyle, PyYAML style indicator or None (plain)
        mark: Source mark used in error messages

    Returns:
        NullValue or ScalarValue

    Raises:
        ScalarFormatError: if raw does not parse as a standard tag demands
    """
    style = ScalarStyle(style)
    tag = normalize_tag(tag)

    if is_null(raw, style):
        return NullValue()

    if tag is not None:
        if tag == NON_SPECIFIC_TAG or tag == STR_TAG:
            return ScalarValue(raw, raw, ScalarKind.STRING)
        constructor = tag_constructors.get(tag)
        if constructor is not None:
            return constructor(raw, tag, mark)

    if style.quoted:
        return ScalarValue(raw, raw, ScalarKind.STRING)
    return infer_plain(raw)


def infer_plain(raw):
    """Infer the value of an untagged plain scalar."""
    lowered = raw.lower()
    if lowered == 'true':
        return ScalarValue(raw, True, ScalarKind.BOOL)
    if lowered == 'false':
        return ScalarValue(raw, False, ScalarKind.BOOL)
    if INT_RE.match(raw):
        value = int(raw)
        return ScalarValue(raw, value, int_kind(value))
    match = DECIMAL_RE.match(raw)
    if match:
        value = decimal.Decimal(raw)
        if (match.group('exponent') and value == value.to_integral_value()
                and value.adjusted() < MAX_EXPONENT_INT_DIGITS):
            value = int(value)
            return ScalarValue(raw, value, int_kind(value))
        return ScalarValue(raw, value, ScalarKind.DECIMAL)
    if 'T' in raw or '-' in raw:
        value = construct_timestamp(raw)
        if value is not None:
            return ScalarValue(raw, value, ScalarKind.TIMESTAMP)
    return ScalarValue(raw, raw, ScalarKind.STRING)


def construct_int(value):
    """Construct an int from YAML integer text (0b, 0o, 0x and '_' allowed)."""
    value = value.replace('_', '')
    sign = 1
    if value.startswith('-'):
        sign = -1
        value = value[1:]
    elif value.startswith('+'):
        value = value[1:]
    if value.startswith('0b'):
        return sign * int(value[2:], 2)
    elif value.startswith('0x'):
        return sign * int(value[2:], 16)
    elif value.startswith('0o'):
        return sign * int(value[2:], 8)
    return sign * int(value)


def construct_timestamp(value):
    """Construct a date or datetime from ISO-8601 text, or None."""
    match = TIMESTAMP_RE.match(value)
    if match is None:
        return None
    values = match.groupdict()
    try:
        year = int(values['year'])
        month = int(values['month'])
        day = int(values['day'])
        if not values['hour']:
            return datetime.date(year, month, day)
        hour = int(values['hour'])
        minute = int(values['minute'])
        second = int(values['second'])
        fraction = 0
        if values['fraction']:
            fraction = int(values['fraction'][:6].ljust(6, '0'))
        tz = None
        if values['tz'] == 'Z':
            tz = datetime.timezone.utc
        elif values['tz_sign']:
            tz_hour = int(values['tz_hour'])
            tz_minute = int(values['tz_minute'] or 0)
            delta = datetime.timedelta(hours=tz_hour, minutes=tz_minute)
            if values['tz_sign'] == '-':
                delta = -delta
            tz = datetime.timezone(delta)
        return datetime.datetime(year, month, day, hour, minute, second,
                                 fraction, tz)
    except ValueError:
        # Out of range field, e.g. month 13.
        return None


def _construct_tagged_null(raw, tag, mark):
    if raw in NULL_VALUES or raw.lower() == 'null':
        return NullValue()
    raise ScalarFormatError(tag, raw, mark)


def _construct_tagged_bool(raw, tag, mark):
    lowered = raw.strip().lower()
    if lowered == 'true':
        return ScalarValue(raw, True, ScalarKind.BOOL)
    if lowered == 'false':
        return ScalarValue(raw, False, ScalarKind.BOOL)
    raise ScalarFormatError(tag, raw, mark)


def _construct_tagged_int(raw, tag, mark):
    text = raw.strip()
    if not TAGGED_INT_RE.match(text) or not text.strip('+-_'):
        raise ScalarFormatError(tag, raw, mark)
    try:
        value = construct_int(text)
    except ValueError as exc:
        raise ScalarFormatError(tag, raw, mark) from exc
    return ScalarValue(raw, value, int_kind(value))


def _construct_tagged_float(raw, tag, mark):
    text = raw.strip().replace('_', '')
    lowered = text.lower()
    if lowered in ('.inf', '+.inf'):
        return ScalarValue(raw, float('inf'), ScalarKind.FLOAT)
    if lowered == '-.inf':
        return ScalarValue(raw, float('-inf'), ScalarKind.FLOAT)
    if lowered == '.nan':
        return ScalarValue(raw, float('nan'), ScalarKind.FLOAT)
    try:
        value = decimal.Decimal(text)
    except decimal.InvalidOperation as exc:
        raise ScalarFormatError(tag, raw, mark) from exc
    if not value.is_finite():
        # Decimal also reads 'Infinity' and 'NaN'; YAML spells those .inf/.nan.
        raise ScalarFormatError(tag, raw, mark)
    return ScalarValue(raw, value, ScalarKind.DECIMAL)


def _construct_tagged_timestamp(raw, tag, mark):
    value = construct_timestamp(raw.strip())
    if value is None:
        raise ScalarFormatError(tag, raw, mark)
    return ScalarValue(raw, value, ScalarKind.TIMESTAMP)


tag_constructors = {
    NULL_TAG: _construct_tagged_null,
    BOOL_TAG: _construct_tagged_bool,
    INT_TAG: _construct_tagged_int,
    FLOAT_TAG: _construct_tagged_float,
    TIMESTAMP_TAG: _construct_tagged_timestamp,
}


def runtime_tag(value):
    """Standard tag matching the Python type of value, or None."""
    if value is None:
        return NULL_TAG
    if isinstance(value, bool):
        return BOOL_TAG
    if isinstance(value, int):
        return INT_TAG
    if isinstance(value, (float, decimal.Decimal)):
        return FLOAT_TAG
    if isinstance(value, (datetime.date, datetime.datetime)):
        return TIMESTAMP_TAG
    if isinstance(value, str):
        return STR_TAG
    return None


def should_emit_tag(tag, value):
    """Decide whether a stored tag is still valid for value.

    Custom tags always survive. A standard tag survives only while it
    matches the runtime type of value.
    """
    if tag is None:
        return False
    tag = normalize_tag(tag)
    if not is_standard_tag(tag):
        return True
    return runtime_tag(value) == tag


def value_kind(value):
    """ScalarKind of a Python scalar."""
    if value is None:
        return ScalarKind.NULL
    if isinstance(value, bool):
        return ScalarKind.BOOL
    if isinstance(value, int):
        return int_kind(value)
    if isinstance(value, decimal.Decimal):
        return ScalarKind.DECIMAL
    if isinstance(value, float):
        return ScalarKind.FLOAT
    if isinstance(value, (datetime.date, datetime.datetime)):
        return ScalarKind.TIMESTAMP
    return ScalarKind.STRING


def render_scalar(value):
    """Text written for a Python scalar."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (float, decimal.Decimal)):
        if value != value:
            return '.nan'
        if value in (float('inf'), float('-inf')):
            return '.inf' if value > 0 else '-.inf'
        text = str(value) if isinstance(value, decimal.Decimal) else repr(value)
        if 'e' in text.lower():
            text = format(decimal.Decimal(text), 'f')
        return text
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return str(value)


def plain_implicit(text, value):
    """Whether text may be written plain without changing what it reads as.

    Only strings are checked: a string that would read back as null, a bool,
    a number or a timestamp must be quoted.
    """
    if not isinstance(value, str):
        return True
    result = parse_scalar(text)
    return isinstance(result, ScalarValue) and result.kind is ScalarKind.STRING


__all__ = [
    'TAG_PREFIX',
    'NULL_TAG', 'BOOL_TAG', 'INT_TAG', 'FLOAT_TAG', 'STR_TAG',
    'TIMESTAMP_TAG', 'MAP_TAG', 'SEQ_TAG', 'NON_SPECIFIC_TAG',
    'is_standard_tag',
    'normalize_tag',
    'int_kind',
    'is_null',
    'parse_scalar',
    'infer_plain',
    'construct_int',
    'construct_timestamp',
    'runtime_tag',
    'should_emit_tag',
    'value_kind',
    'render_scalar',
    'plain_implicit',
]
