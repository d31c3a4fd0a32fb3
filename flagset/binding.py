"""Declaration binding: describe flags as class attributes, then parse
straight into an instance::

  class Options(object):
      lines = Field('n, lines', 'print the first `NUM` lines', 'int', default='10', flags='posix')
      quiet = Field('q, quiet', 'never print headers', 'bool')

  opts = Options()
  FlagSet('head').parse_struct(['-n5', 'a.txt'], opts)
  opts.lines  # 5

Fields are collected over the class's MRO, base classes first, so
common options can live in a base class and be shared. Until parsed,
an instance's field attribute reads as the field's default.
"""

from collections import OrderedDict

from flagset.errors import FlagDefinitionError
from flagset.parser import NOT_SET, POSIX_SHORT, GREEDY, NOT_VALUE
from flagset.values import get_value_type
from flagset.utils import format_exp_repr


_FLAG_WORDS = {'posix': POSIX_SHORT,
               'posixShort': POSIX_SHORT,
               'greedy': GREEDY,
               'notValue': NOT_VALUE}


def parse_flags(text):
    """Convert a ``|``-separated behavior string, like
    ``"posix|notValue"``, into behavior bits. The first letter of each
    word may be either case.
    """
    ret = 0
    for word in (text or '').split('|'):
        word = word.strip()
        if not word:
            continue
        try:
            ret |= _FLAG_WORDS[word[0].lower() + word[1:]]
        except KeyError:
            raise FlagDefinitionError('unknown flag behavior %r, expected one of: %s'
                                      % (word, ', '.join(sorted(_FLAG_WORDS))))
    return ret


class Field(object):
    """A flag declaration, used as a class attribute.

    Args:
       opt (str): Comma-separated flag names, e.g., ``"n, lines"``.
       usage (str): Help text for usage output.
       kind: A Value subclass, or the name of one (``"int"``,
          ``"string_slice"``, etc.). Defaults to ``"string"``.
       default: A Python value, or declaration text converted with the
          adapter's ``parse_default()``. Sequence text is split on
          *sep*.
       flags (str): Behavior words, see :func:`parse_flags`.
       sep (str): Separator for sequence defaults. Defaults to ``","``.
       match_value: The value assigned when a NOT_VALUE flag matches.
    """
    def __init__(self, opt, usage='', kind='string', default=None, flags='',
                 sep=',', match_value=NOT_SET):
        self.opt = opt
        self.usage = usage
        self.kind = kind
        self.value_type = get_value_type(kind)
        self.default = default
        self.flags = flags
        self.behavior = parse_flags(flags)
        self.sep = sep
        self.match_value = match_value
        self.attr_name = None

    def __set_name__(self, owner, name):
        self.attr_name = name

    def __get__(self, obj, objtype=None):
        if obj is None:
            return self
        return self.make_value().get()

    def make_value(self):
        "Create a fresh adapter holding this field's default."
        value = self.value_type()
        if self.default is None:
            return value
        default = self.default
        if isinstance(default, str):
            try:
                default = value.parse_default(default, self.sep)
            except ValueError as ve:
                raise FlagDefinitionError('invalid default %r for field %s: %s'
                                          % (self.default, self.attr_name or self.opt, ve))
        value.assign(default)
        return value

    def __repr__(self):
        return format_exp_repr(self, ['opt', 'usage'], ['kind'],
                               ['default', 'flags'], opt_key=lambda v: not v)


def get_fields(cls):
    "An OrderedDict of attribute name to Field, base classes first."
    ret = OrderedDict()
    for base in reversed(cls.__mro__):
        for attr_name, val in vars(base).items():
            if isinstance(val, Field):
                ret[attr_name] = val
    return ret


def parse_struct(flagset, args, obj):
    """Register a flag on *flagset* for every Field declared on
    *obj*'s class, parse *args*, and set each field's value as an
    attribute of *obj*. Attributes are set even when parsing fails, so
    values parsed before the error are kept.

    Returns the :class:`~flagset.parser.ParseResult`.
    """
    if isinstance(obj, type):
        raise TypeError('expected an instance to bind flags to, not the class: %r' % obj)
    bound = []
    for attr_name, field in get_fields(type(obj)).items():
        value = field.make_value()
        flag = flagset.opt(field.opt, field.usage).flags(field.behavior)
        if field.match_value is NOT_SET:
            flag.var(value)
        else:
            flag.match_var(value, field.match_value)
        bound.append((attr_name, value))

    try:
        return flagset.parse(args)
    finally:
        for attr_name, value in bound:
            setattr(obj, attr_name, value.get())
