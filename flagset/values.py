"""Value adapters bind a flag to typed storage. Every adapter follows
the same small contract:

* ``set(text)`` parses a token's text into the adapter's state
  (sequence adapters append)
* ``render()`` turns the state back into text, used for defaults in
  usage output
* ``get()`` returns the current Python value
* ``assign(value)`` type-checks and stores a Python value directly,
  used for match values and defaults

Invalid text raises ValueError, which the parser turns into an
InvalidFlagArgument. Values of the wrong Python type raise
InvalidMatchValue, a FlagDefinitionError, since they are mistakes in
the program rather than in its input.
"""

import re
import json
import datetime
from collections import OrderedDict

from flagset.errors import InvalidMatchValue, FlagDefinitionError


_DIGITS = '0123456789abcdefghijklmnopqrstuvwxyz'

_TRUE_STRS = frozenset(['1', 't', 'T', 'TRUE', 'true', 'True'])
_FALSE_STRS = frozenset(['0', 'f', 'F', 'FALSE', 'false', 'False'])

_INF = float('inf')
_NONFINITE_STRS = frozenset(['inf', 'infinity', 'nan'])

_BYTE_ESCAPES = {'\\a': 0x07,
                 '\\b': 0x08,
                 '\\e': 0x1B,
                 '\\f': 0x0C,
                 '\\n': 0x0A,
                 '\\r': 0x0D,
                 '\\t': 0x09,
                 '\\v': 0x0B}

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

_DURATION_UNITS = {'ns': NANOSECOND,
                   'us': MICROSECOND,
                   'µs': MICROSECOND,  # micro sign
                   'μs': MICROSECOND,  # greek small letter mu
                   'ms': MILLISECOND,
                   's': SECOND,
                   'm': MINUTE,
                   'h': HOUR}

_DURATION_PART_RE = re.compile(r'(\d*)(?:\.(\d*))?([^\d.]*)', re.ASCII)


def parse_bool(text):
    if text in _TRUE_STRS:
        return True
    if text in _FALSE_STRS:
        return False
    raise ValueError('invalid syntax: %r' % text)


def parse_int(text, base=10, bits=64, signed=True):
    """Parse an integer the way strict command-line tools expect: no
    surrounding whitespace, no digit separators, and range-checked
    against *bits*. A *base* of 0 infers the base from the prefix
    (``0x``, ``0o``, ``0b``, or a leading ``0`` for octal). Unsigned
    parsing rejects any sign.
    """
    orig = text
    sign = 1
    if text[:1] in ('+', '-'):
        if not signed:
            raise ValueError('invalid syntax: %r' % orig)
        if text[0] == '-':
            sign = -1
        text = text[1:]

    if base == 0:
        base = 10
        prefix = text[:2].lower()
        if prefix == '0x':
            base, text = 16, text[2:]
        elif prefix == '0b':
            base, text = 2, text[2:]
        elif prefix == '0o':
            base, text = 8, text[2:]
        elif len(text) > 1 and text[0] == '0':
            base, text = 8, text[1:]

    valid_digits = _DIGITS[:base]
    if not text or [c for c in text.lower() if c not in valid_digits]:
        raise ValueError('invalid syntax: %r' % orig)

    ret = sign * int(text, base)
    if signed:
        low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
    else:
        low, high = 0, (1 << bits) - 1
    if not low <= ret <= high:
        raise ValueError('value out of range: %r' % orig)
    return ret


def parse_byte(text):
    """Parse a byte from declaration text. Accepts the C-style escapes
    (``\\n``, ``\\t``, ...), ``xHH`` hexadecimal, ``0OOO`` octal, and
    plain decimal.
    """
    if text in _BYTE_ESCAPES:
        return _BYTE_ESCAPES[text]
    if text[:1] == 'x':
        return parse_int(text[1:], 16, 8, signed=False)
    if len(text) > 1 and text[:1] == '0':
        return parse_int(text[1:], 8, 8, signed=False)
    return parse_int(text, 10, 8, signed=False)


def parse_float(text):
    if not text or text != text.strip() or '_' in text:
        raise ValueError('invalid syntax: %r' % text)
    ret = float(text)
    if ret != ret or ret in (_INF, -_INF):
        if text.lstrip('+-').lower() not in _NONFINITE_STRS:
            raise ValueError('value out of range: %r' % text)
    return ret


def format_float(val):
    if val != val:
        return 'NaN'
    if val == float('inf'):
        return '+Inf'
    if val == float('-inf'):
        return '-Inf'
    ret = repr(val)
    if ret.endswith('.0'):
        ret = ret[:-2]
    return ret


def timedelta_to_ns(td):
    return (td.days * 86400 + td.seconds) * SECOND + td.microseconds * MICROSECOND


def ns_to_timedelta(ns):
    # timedelta bottoms out at microseconds, truncate toward zero
    ret = datetime.timedelta(microseconds=abs(ns) // MICROSECOND)
    return -ret if ns < 0 else ret


def parse_duration(text):
    """Parse a duration string like ``"300ms"``, ``"-1.5h"`` or
    ``"2h45m"`` into a :class:`datetime.timedelta`. Valid units are
    ``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m``, and ``h``. A
    bare ``0`` is the only unitless duration allowed.

    Precision below a microsecond is truncated.
    """
    orig = text
    negative = False
    if text[:1] in ('+', '-'):
        negative = text[0] == '-'
        text = text[1:]
    if text == '0':
        return datetime.timedelta(0)
    if not text:
        raise ValueError('invalid duration: %r' % orig)

    total, pos = 0, 0
    while pos < len(text):
        match = _DURATION_PART_RE.match(text, pos)
        whole, frac, unit = match.groups()
        if not whole and not frac:
            raise ValueError('invalid duration: %r' % orig)
        if not unit:
            raise ValueError('missing unit in duration: %r' % orig)
        try:
            scale = _DURATION_UNITS[unit]
        except KeyError:
            raise ValueError('unknown unit %r in duration %r' % (unit, orig))
        total += int(whole or '0') * scale
        if frac:
            total += int(frac) * scale // (10 ** len(frac))
        pos = match.end()

    try:
        return ns_to_timedelta(-total if negative else total)
    except OverflowError:
        raise ValueError('invalid duration: %r' % orig)


def _format_fraction(val, unit):
    whole, frac = divmod(val, unit)
    if not frac:
        return '%d' % whole
    width = len(str(unit)) - 1
    return '%d.%s' % (whole, ('%0*d' % (width, frac)).rstrip('0'))


def format_duration(td):
    """Render a timedelta in the compact form accepted by
    parse_duration(), e.g., ``"1h2m3.5s"``, ``"1.5ms"`` or ``"0s"``.
    Durations under a second use the largest unit that keeps the
    number at or above one.
    """
    ns = timedelta_to_ns(td)
    negative, ns = ns < 0, abs(ns)
    if ns == 0:
        return '0s'

    if ns < SECOND:
        if ns < MICROSECOND:
            ret = '%dns' % ns
        elif ns < MILLISECOND:
            ret = _format_fraction(ns, MICROSECOND) + 'µs'
        else:
            ret = _format_fraction(ns, MILLISECOND) + 'ms'
    else:
        hours, rem = divmod(ns, HOUR)
        minutes, rem = divmod(rem, MINUTE)
        ret = _format_fraction(rem, SECOND) + 's'
        if hours or minutes:
            ret = '%dm' % minutes + ret
        if hours:
            ret = '%dh' % hours + ret

    return '-' + ret if negative else ret


class Value(object):
    """The base value adapter. Subclasses implement ``parse()`` and
    ``accepts()``, and usually ``render()``.

    Args:
       default: The initial value, stored as-is after a type
          check. Defaults to the type's zero value.
    """
    display_name = 'value'
    is_bool_flag = False
    zero = None

    def __init__(self, default=None):
        if default is None:
            default = self.zero
        self.value = self.check_value(default)

    def parse(self, text):
        raise NotImplementedError()

    def accepts(self, value):
        return True

    def set(self, text):
        self.value = self.parse(text)

    def get(self):
        return self.value

    def assign(self, value):
        self.value = self.check_value(value)

    def render(self):
        return str(self.value)

    def parse_default(self, text, sep=','):
        "Convert declaration default text, see flagset.binding"
        return self.parse(text)

    def check_value(self, value):
        if not self.accepts(value):
            raise InvalidMatchValue('%s expected a %s value, not: %r'
                                    % (self.__class__.__name__,
                                       self.display_name or 'bool', value))
        return value

    def __str__(self):
        return self.render()

    def __repr__(self):
        return '<%s %s>' % (self.__class__.__name__, self.render())


class BoolValue(Value):
    display_name = ''
    is_bool_flag = True
    zero = False

    def parse(self, text):
        return parse_bool(text)

    def accepts(self, value):
        return isinstance(value, bool)

    def render(self):
        return 'true' if self.value else 'false'


class _IntegerValue(Value):
    display_name = 'int'
    base = 10
    bits = 64
    signed = True
    zero = 0

    def parse(self, text):
        return parse_int(text, self.base, self.bits, self.signed)

    def accepts(self, value):
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        if self.signed:
            return -(1 << (self.bits - 1)) <= value < (1 << (self.bits - 1))
        return 0 <= value < (1 << self.bits)

    def render(self):
        return '%d' % self.value


class IntValue(_IntegerValue):
    bits = 32


class Int64Value(_IntegerValue):
    base = 0


class UintValue(_IntegerValue):
    display_name = 'uint'
    base = 0
    signed = False


class Uint64Value(UintValue):
    pass


class ByteValue(_IntegerValue):
    display_name = 'byte'
    bits = 8
    signed = False

    def parse_default(self, text, sep=','):
        return parse_byte(text)


class Float64Value(Value):
    display_name = 'float'
    zero = 0.0

    def parse(self, text):
        return parse_float(text)

    def accepts(self, value):
        return isinstance(value, (int, float)) and not isinstance(value, bool)

    def check_value(self, value):
        return float(super(Float64Value, self).check_value(value))

    def render(self):
        return format_float(self.value)


class StringValue(Value):
    display_name = 'string'
    zero = ''

    def parse(self, text):
        return text

    def accepts(self, value):
        return isinstance(value, str)


class DurationValue(Value):
    display_name = 'duration'
    zero = datetime.timedelta(0)

    def parse(self, text):
        return parse_duration(text)

    def accepts(self, value):
        return isinstance(value, datetime.timedelta)

    def render(self):
        return format_duration(self.value)


class SliceValue(Value):
    """Base for sequence adapters. Each ``set()`` parses one item with
    *item_type* and appends it, so repeated flags (and greedy flags)
    accumulate. The default is copied, never shared.
    """
    item_type = StringValue

    def __init__(self, default=None):
        self._item = self.item_type()
        super(SliceValue, self).__init__([] if default is None else default)

    def parse(self, text):
        return self._item.parse(text)

    def set(self, text):
        self.value.append(self.parse(text))

    def accepts(self, value):
        if not isinstance(value, (list, tuple)):
            return False
        return all([self._item.accepts(v) for v in value])

    def check_value(self, value):
        value = super(SliceValue, self).check_value(value)
        return [self._item.check_value(v) for v in value]

    def parse_default(self, text, sep=','):
        return [self._item.parse_default(part, sep) for part in text.split(sep or ',')]

    def render(self):
        return json.dumps(self.value, separators=(',', ':'))


class BoolSliceValue(SliceValue):
    display_name = ''
    item_type = BoolValue
    is_bool_flag = True


class Int64SliceValue(SliceValue):
    display_name = 'int[]'
    item_type = Int64Value


class StringSliceValue(SliceValue):
    display_name = 'string[]'
    item_type = StringValue


class DurationSliceValue(SliceValue):
    display_name = 'duration[]'
    item_type = DurationValue

    def render(self):
        return '[%s]' % ', '.join([format_duration(d) for d in self.value])


VALUE_TYPES = OrderedDict([('bool', BoolValue),
                           ('byte', ByteValue),
                           ('int', IntValue),
                           ('int64', Int64Value),
                           ('uint', UintValue),
                           ('uint64', Uint64Value),
                           ('float64', Float64Value),
                           ('string', StringValue),
                           ('duration', DurationValue),
                           ('bool_slice', BoolSliceValue),
                           ('int64_slice', Int64SliceValue),
                           ('string_slice', StringSliceValue),
                           ('duration_slice', DurationSliceValue)])


def get_value_type(kind):
    """Resolve *kind*, a Value subclass or one of the names in
    VALUE_TYPES (e.g., ``'int'`` or ``'string_slice'``), to a Value
    subclass.
    """
    if isinstance(kind, type) and issubclass(kind, Value):
        return kind
    try:
        return VALUE_TYPES[kind]
    except (KeyError, TypeError):
        raise FlagDefinitionError('expected Value subclass or one of %r, not: %r'
                                  % (list(VALUE_TYPES.keys()), kind))
