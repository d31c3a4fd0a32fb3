
import re
import sys
import os.path
from collections import OrderedDict

from boltons.iterutils import unique
from boltons.typeutils import make_sentinel
from boltons.dictutils import OrderedMultiDict as OMD

from flagset.utils import (split_names,
                           join_names,
                           is_reserved,
                           format_nonexp_repr,
                           RESERVED_NAMES,
                           HELP_NAMES,
                           VERSION_NAMES)
from flagset.errors import (ArgumentParseError,
                            BadFlagSyntax,
                            UnknownFlag,
                            MissingFlagArgument,
                            InvalidFlagArgument,
                            FlagDefinitionError,
                            FlagRedefined,
                            ConflictingBehavior,
                            HelpRequested,
                            VersionRequested,
                            CommandLineError,
                            ParsePanic)
from flagset.values import (Value,
                            BoolValue,
                            ByteValue,
                            IntValue,
                            Int64Value,
                            UintValue,
                            Uint64Value,
                            Float64Value,
                            StringValue,
                            DurationValue,
                            BoolSliceValue,
                            Int64SliceValue,
                            StringSliceValue,
                            DurationSliceValue)
from flagset.helpers import DEFAULT_FORMATTER


CONTINUE_ON_ERROR = make_sentinel('CONTINUE_ON_ERROR', 'CONTINUE_ON_ERROR')
EXIT_ON_ERROR = make_sentinel('EXIT_ON_ERROR', 'EXIT_ON_ERROR')
PANIC_ON_ERROR = make_sentinel('PANIC_ON_ERROR', 'PANIC_ON_ERROR')
_ERROR_HANDLING = (CONTINUE_ON_ERROR, EXIT_ON_ERROR, PANIC_ON_ERROR)

NOT_SET = make_sentinel('NOT_SET', 'NOT_SET')

# behavior bits
POSIX_SHORT = 1 << 0
GREEDY = 1 << 1
REGEX_KEY_IS_VALUE = 1 << 2
NOT_VALUE = 1 << 3
POSIX = POSIX_SHORT
_ALL_BEHAVIOR = POSIX_SHORT | GREEDY | REGEX_KEY_IS_VALUE | NOT_VALUE

# token kinds
POSITIONAL = 'positional'
FLAG = 'flag'
TERMINATOR = 'terminator'


def raise_for_policy(error_handling, exc):
    """Raise the outcome of a failed or interrupted parse, after its
    output has been written. Help and version requests exit with code
    0 under EXIT_ON_ERROR and are otherwise raised as-is, like errors
    under CONTINUE_ON_ERROR.
    """
    msg = exc.args[0] if exc.args else ''
    if isinstance(exc, (HelpRequested, VersionRequested)):
        if error_handling is EXIT_ON_ERROR:
            raise CommandLineError(msg, code=0) from exc
        raise exc
    if error_handling is EXIT_ON_ERROR:
        raise CommandLineError(msg, code=2) from exc
    if error_handling is PANIC_ON_ERROR:
        raise ParsePanic(msg) from exc
    raise exc


def is_positional_token(text):
    "Anything shorter than two characters or not starting with a dash."
    return len(text) < 2 or text[0] != '-'


class ArgToken(object):
    """One classified command-line token, as returned by
    :func:`classify_token`. *name* and *value* are only set for flag
    tokens, and *has_value* tells ``-x=`` (empty value) apart from
    ``-x``.
    """
    def __init__(self, kind, text, name=None, num_dashes=0,
                 has_value=False, value=None):
        self.kind = kind
        self.text = text
        self.name = name
        self.num_dashes = num_dashes
        self.has_value = has_value
        self.value = value

    def __repr__(self):
        return format_nonexp_repr(self, ['kind', 'text'], ['name', 'value'])


def classify_token(text):
    """Classify a single argument into a positional argument, the
    ``--`` terminator, or a flag. Flags have one or two leading dashes
    stripped and are split on the first ``=``::

      >>> classify_token('--lines=10')
      <ArgToken kind='flag' text='--lines=10' name='lines' value='10'>

    Raises BadFlagSyntax for tokens like ``---x`` and ``-=x``.
    """
    if is_positional_token(text):
        return ArgToken(POSITIONAL, text)
    num_dashes = 1
    if text[1] == '-':
        num_dashes = 2
        if len(text) == 2:
            return ArgToken(TERMINATOR, text)
    name = text[num_dashes:]
    if not name or name[0] in ('-', '='):
        raise BadFlagSyntax.from_parse(text)
    name, sep, value = name.partition('=')
    if not sep:
        return ArgToken(FLAG, text, name=name, num_dashes=num_dashes)
    return ArgToken(FLAG, text, name=name, num_dashes=num_dashes,
                    has_value=True, value=value)


class Flag(object):
    """A Flag is a named binding between the command line and a value
    adapter. Flags are not usually instantiated directly, but built
    through :meth:`FlagSet.opt` or :meth:`FlagSet.opt_opt`, then
    configured and registered in one chain::

      lines = fs.opt('n, lines', 'print the first `NUM` lines').flags(POSIX).new_int(10)

    Every finalizer (:meth:`var`, :meth:`match_var` and the
    ``new_*()`` family) registers the flag with its FlagSet and returns
    the bound adapter, whose ``get()`` returns the parsed value.

    Args:
       name (str): One or more comma-separated names, e.g., ``"n,
          lines"``. Names are given without dashes.
       usage (str): Help text shown in usage output. A back-quoted
          word becomes the value name, e.g., ``"print `NUM` lines"``.
       behavior (int): Bitwise-OR of POSIX_SHORT, GREEDY,
          REGEX_KEY_IS_VALUE and NOT_VALUE.
       regex (str): A pattern tried with ``re.search()`` against
          names that match no registered name.
       short (list): Short aliases for a pattern flag.
       long (list): Long aliases for a pattern flag.
       flagset (FlagSet): The FlagSet the finalizers register with.
    """
    def __init__(self, name, usage='', behavior=0, regex=None,
                 short=None, long=None, flagset=None):
        self.regex = regex
        self.short = list(short or [])
        self.long = list(long or [])
        if self.short or self.long:
            self.name, self.names = join_names(self.short + self.long)
        elif name:
            self.name, self.names = split_names(name)
        elif regex:
            # a bare pattern flag is shown and stored under its pattern
            self.name, self.names = regex, []
        else:
            raise FlagDefinitionError('expected flag name or pattern, not: %r' % (name,))

        for n in self.names:
            if n[0] == '-' or '=' in n or len(n.split()) != 1:
                raise FlagDefinitionError('expected flag name without leading dashes,'
                                          ' "=", or whitespace, not: %r' % n)

        self.usage = usage or ''
        self.behavior = 0
        self.value = None
        self.def_value = None
        self.match_value = NOT_SET
        self.flagset = flagset
        self._registered = False
        self.flags(behavior)

    @property
    def takes_value(self):
        "True if matching this flag can consume an argument."
        if self.behavior & NOT_VALUE:
            return False
        return not getattr(self.value, 'is_bool_flag', False)

    @property
    def is_set(self):
        return self.flagset is not None and self.flagset.is_set(self.name)

    def flags(self, behavior):
        if self._registered:
            raise FlagDefinitionError('cannot change behavior of registered flag: %s' % self.name)
        if behavior & ~_ALL_BEHAVIOR:
            raise FlagDefinitionError('unknown behavior bits for flag %s: %r' % (self.name, behavior))
        self.behavior |= behavior
        return self

    def var(self, value):
        """Bind *value*, a Value adapter instance, register the flag with
        its FlagSet, and return *value*. The adapter's current state is
        rendered as the default shown in usage output.
        """
        if not isinstance(value, Value):
            raise FlagDefinitionError('expected Value adapter instance for flag %s, not: %r'
                                      % (self.name, value))
        self.value = value
        self.def_value = value.render()
        if self.flagset is not None:
            self.flagset._register(self)
        return value

    def match_var(self, value, match_value):
        """Like :meth:`var`, but the flag takes no argument. Instead,
        *match_value* is assigned to *value* whenever the flag
        matches. Raises InvalidMatchValue if *match_value* does not fit
        the adapter's type.
        """
        value.check_value(match_value)
        self.behavior |= NOT_VALUE
        self.match_value = match_value
        return self.var(value)

    def new_bool(self, default=False):
        return self.var(BoolValue(default))

    def new_byte(self, default=0):
        return self.var(ByteValue(default))

    def new_int(self, default=0):
        return self.var(IntValue(default))

    def new_int64(self, default=0):
        return self.var(Int64Value(default))

    def new_uint(self, default=0):
        return self.var(UintValue(default))

    def new_uint64(self, default=0):
        return self.var(Uint64Value(default))

    def new_float64(self, default=0.0):
        return self.var(Float64Value(default))

    def new_string(self, default=''):
        return self.var(StringValue(default))

    def new_duration(self, default=None):
        return self.var(DurationValue(default))

    def new_bool_slice(self, default=None):
        return self.var(BoolSliceValue(default))

    def new_int64_slice(self, default=None):
        return self.var(Int64SliceValue(default))

    def new_string_slice(self, default=None):
        return self.var(StringSliceValue(default))

    def new_duration_slice(self, default=None):
        return self.var(DurationSliceValue(default))

    def __repr__(self):
        return format_nonexp_repr(self, ['name', 'value'], ['regex', 'behavior'],
                                  opt_key=lambda v: not v)


class _ParseSession(object):
    "State for a single FlagSet.parse() call."
    def __init__(self, args):
        self.args = list(args)
        self.posargs = []
        self.seen = OMD()
        self.actual = OrderedDict()

    def pop(self):
        return self.args.pop(0)

    def mark(self, flag, name):
        self.seen.add(flag.name, name)
        self.actual[flag.name] = flag


class FlagSet(object):
    """A FlagSet is a collection of flags which parses a list of
    argument strings into the flags' value adapters, plus a list of
    positional arguments.

    Args:
       name (str): Used in usage and error output. Defaults to no name.
       error_handling: One of CONTINUE_ON_ERROR (the default), which
          raises ArgumentParseErrors to the caller, EXIT_ON_ERROR,
          which raises CommandLineError (a SystemExit), or
          PANIC_ON_ERROR, which raises ParsePanic.
       output (file): Where errors, usage and version text are
          written. Defaults to whatever ``sys.stderr`` is at the time
          of writing.
       usage (callable): Called with no arguments in place of the
          default usage printer.
       version (str): Version text, shown by ``-V``/``--version``.
       author (str): Shown atop usage output.
       formatter (UsageFormatter): Renders usage and version text.

    ``-h``/``--help`` and ``-V``/``--version`` are registered on
    construction and handled before any other flag lookup.
    """
    def __init__(self, name='', error_handling=CONTINUE_ON_ERROR, output=None,
                 usage=None, version=None, author=None, formatter=None):
        if error_handling not in _ERROR_HANDLING:
            raise ValueError('expected error_handling to be one of CONTINUE_ON_ERROR,'
                             ' EXIT_ON_ERROR, or PANIC_ON_ERROR, not: %r' % (error_handling,))
        self.name = name or ''
        self.error_handling = error_handling
        self._output = output
        self.usage_func = usage
        self.version = version
        self.author = author
        self.formatter = formatter or DEFAULT_FORMATTER

        self.posix_short = False
        self.parsed = False
        self.actual = OrderedDict()
        self.seen = OMD()
        self._formal = OrderedDict()
        self._aliases = OrderedDict()
        self._patterns = OrderedDict()
        self._args = []

        self.opt('h, help', 'display this help and exit').new_bool()
        self.opt('V, version', 'output version information and exit').new_bool()

    @property
    def output(self):
        if self._output is not None:
            return self._output
        return sys.stderr

    @output.setter
    def output(self, output):
        self._output = output

    def __repr__(self):
        return format_nonexp_repr(self, ['name'], ['version'])

    # flag definition

    def opt(self, name, usage=''):
        "Start building a flag. See :class:`Flag` for the finalizers."
        return Flag(name, usage, flagset=self)

    def opt_opt(self, regex=None, short=(), long=(), usage=''):
        """Start building a pattern flag, matched by its *short* and
        *long* names as usual, and by *regex* for any other name::

          fs.opt_opt(regex=r'^\\d+$', short=['n'], long=['lines']).flags(
              POSIX | REGEX_KEY_IS_VALUE).new_int(10)

        makes ``-n 5``, ``--lines=5``, ``-n5`` and ``-5`` equivalent.
        """
        return Flag(None, usage, regex=regex, short=short, long=long, flagset=self)

    def add(self, name, value, usage='', behavior=0):
        "Register a flag in a single call, returning the Flag."
        flag = self.opt(name, usage).flags(behavior)
        flag.var(value)
        return flag

    def _register(self, flag):
        if flag.behavior & POSIX_SHORT and flag.behavior & GREEDY:
            raise ConflictingBehavior('flag %s cannot be both POSIX_SHORT and GREEDY' % flag.name)
        if flag.behavior & NOT_VALUE and flag.match_value is NOT_SET:
            raise FlagDefinitionError('flag %s has NOT_VALUE behavior and no match'
                                      ' value, see Flag.match_var()' % flag.name)

        pattern = None
        if flag.regex is not None:
            try:
                pattern = re.compile(flag.regex)
            except re.error as re_err:
                raise FlagDefinitionError('invalid pattern %r for flag %s: %s'
                                          % (flag.regex, flag.name, re_err))
            if flag.regex in self._patterns:
                self._redefined(flag.regex)

        # first check there are no conflicts...
        reserved = bool(flag.names) and is_reserved(flag.name)
        if not reserved and flag.name in self._formal:
            self._redefined(flag.name)
        for name in flag.names:
            if name in RESERVED_NAMES:
                continue
            if name in self._aliases or (name != flag.name and name in self._formal):
                self._redefined(name)

        # ... then we add the flag
        self._formal[flag.name] = flag
        if len(flag.names) > 1:
            for name in flag.names:
                self._aliases[name] = flag
        if pattern is not None:
            self._patterns[flag.regex] = (pattern, flag)
        if flag.behavior & POSIX_SHORT:
            self.posix_short = True
        flag.flagset = self
        flag._registered = True

    def _redefined(self, name):
        fre = FlagRedefined.from_parse(self.name, name)
        self._write_line(fre.args[0])
        raise fre

    # lookup and inspection

    def _match(self, name):
        "Returns (flag, matched_by_pattern) or None."
        flag = self._formal.get(name)
        if flag is None:
            flag = self._aliases.get(name)
        if flag is not None:
            return flag, False
        for pattern, flag in self._patterns.values():
            if pattern.search(name):
                return flag, True
        return None

    def lookup(self, name):
        """Get the Flag registered under *name*, checking canonical names,
        then aliases, then patterns. Returns None if there is no such
        flag.
        """
        match = self._match(name)
        return match[0] if match else None

    def get_flags(self):
        "All registered flags, sorted by canonical name."
        return sorted(unique(self._formal.values()), key=lambda f: f.name)

    def visit_all(self, func):
        for flag in self.get_flags():
            func(flag)

    def visit(self, func):
        "Like visit_all(), but only for flags set by the last parse or set()."
        for name in sorted(self.actual):
            func(self.actual[name])

    def is_set(self, name):
        flag = self.lookup(name)
        return flag is not None and flag.name in self.actual

    def set(self, name, text):
        """Set a flag's value from *text*, as if it had been passed on the
        command line, and mark it as set. Only exact names and aliases
        are accepted.
        """
        flag = self._formal.get(name) or self._aliases.get(name)
        if flag is None:
            raise UnknownFlag('no such flag -%s' % name)
        if flag.behavior & NOT_VALUE:
            flag.value.assign(flag.match_value)
        else:
            try:
                flag.value.set(text)
            except ValueError as ve:
                raise InvalidFlagArgument.from_parse(flag, name, text, ve)
        self.actual[flag.name] = flag
        self.seen.add(flag.name, name)

    @property
    def args(self):
        "Positional arguments, followed by any arguments after ``--``."
        return list(self._args)

    def arg(self, i):
        if 0 <= i < len(self._args):
            return self._args[i]
        return ''

    def narg(self):
        return len(self._args)

    def nflag(self):
        return len(self.actual)

    # output

    def _write(self, text):
        self.output.write(text)

    def _write_line(self, text):
        self._write(text + '\n')

    def print_usage(self):
        if self.usage_func is not None:
            self.usage_func()
            return
        self._write(self.formatter.get_usage_text(self))

    def print_version(self):
        self._write(self.formatter.get_version_text(self))

    # parsing

    def parse(self, args=None):
        """Parse a list of argument strings (without the program name)
        into the registered flags' adapters, returning a
        :class:`ParseResult`.

        Args:
           args (list): The arguments to parse. Defaults to
              ``sys.argv[1:]``.

        Parsing stops at the first error, which is written to
        :attr:`output` followed by the usage text, then handled
        according to the FlagSet's error handling policy. Flags set
        before the error keep their values, and the unparsed
        arguments are available as :attr:`args`.
        """
        if args is None:
            args = sys.argv[1:]
        argv = tuple(args)
        session = _ParseSession(argv)
        self.parsed = True
        try:
            try:
                self._parse_args(session)
            finally:
                self._args = session.posargs + session.args
                self.actual = session.actual
                self.seen = session.seen
        except (HelpRequested, VersionRequested) as req:
            self._handle_request(req)
        except ArgumentParseError as ape:
            self._handle_error(ape)

        flags = OrderedDict([(f.name, f.value.get()) for f in self.get_flags()])
        return ParseResult(self.name, flags, self._args, self.actual.keys(), argv)

    def parse_struct(self, args, obj):
        "Bind *obj*'s Field declarations to flags and parse, see flagset.binding."
        from flagset.binding import parse_struct
        return parse_struct(self, args, obj)

    def _handle_request(self, req):
        if isinstance(req, HelpRequested):
            self.print_usage()
        else:
            self.print_version()
        raise_for_policy(self.error_handling, req)

    def _handle_error(self, ape):
        self._write_line(ape.args[0])
        self.print_usage()
        raise_for_policy(self.error_handling, ape)

    def _parse_args(self, session):
        while session.args:
            token = classify_token(session.args[0])
            session.pop()
            if token.kind == TERMINATOR:
                return
            if token.kind == POSITIONAL:
                session.posargs.append(token.text)
                continue
            self._parse_flag(session, token)
        return

    def _resolve(self, name):
        if name in HELP_NAMES:
            raise HelpRequested('help requested: -%s' % name)
        if name in VERSION_NAMES:
            raise VersionRequested('version requested: -%s' % name)
        return self._match(name)

    def _parse_flag(self, session, token):
        name = token.name
        match = self._resolve(name)
        if match is None:
            if self.posix_short and token.num_dashes == 1:
                if self._parse_cluster(session, token):
                    return
            raise UnknownFlag.from_parse(self, name)

        flag, by_pattern = match
        if flag.takes_value and by_pattern and flag.behavior & REGEX_KEY_IS_VALUE:
            self._set_flag(session, flag, name, True, name)
            return
        self._set_flag(session, flag, name, token.has_value, token.value)
        if flag.takes_value and flag.behavior & GREEDY:
            while session.args and is_positional_token(session.args[0]):
                self._set_flag(session, flag, name, True, session.pop())
        return

    def _parse_cluster(self, session, token):
        """Resolve a token like ``-abc`` or ``-n5`` character by character,
        returning the number of characters applied.
        """
        name = token.name
        applied = 0
        for i, char in enumerate(name):
            try:
                match = self._resolve(char)
            except (HelpRequested, VersionRequested):
                if applied:
                    continue
                raise
            if match is None:
                continue
            flag, by_pattern = match
            if not flag.behavior & POSIX_SHORT:
                continue

            rest = name[i + 1:]
            if flag.takes_value:
                if by_pattern and flag.behavior & REGEX_KEY_IS_VALUE:
                    self._set_flag(session, flag, char, True, name[i:])
                elif rest:
                    self._set_flag(session, flag, char, True, rest)
                else:
                    self._set_flag(session, flag, char, token.has_value, token.value)
                return applied + 1

            if rest:
                self._set_flag(session, flag, char, False, None)
            else:
                self._set_flag(session, flag, char, token.has_value, token.value)
            applied += 1
        return applied

    def _set_flag(self, session, flag, name, has_value, value):
        if flag.behavior & NOT_VALUE:
            flag.value.assign(flag.match_value)
        elif flag.value.is_bool_flag:
            text = value if has_value else 'true'
            try:
                flag.value.set(text)
            except ValueError as ve:
                raise InvalidFlagArgument.from_parse(flag, name, text, ve)
        else:
            if not has_value:
                if not session.args:
                    raise MissingFlagArgument.from_parse(flag, name)
                value = session.pop()
            try:
                flag.value.set(value)
            except ValueError as ve:
                raise InvalidFlagArgument.from_parse(flag, name, value, ve)
        session.mark(flag, name)


class ParseResult(object):
    """The result of :meth:`FlagSet.parse`.

    Args:
       name (str): The FlagSet's name.
       flags (OrderedDict): Mapping of canonical flag names to current
          values, for every registered flag.
       args (tuple): Positional arguments, followed by any arguments
          after ``--``.
       seen (tuple): Canonical names of the flags set by the parse.
       argv (tuple): The arguments that were parsed.
    """
    def __init__(self, name, flags, args, seen, argv=()):
        self.name = name
        self.flags = OrderedDict(flags)
        self.args = tuple(args)
        self.seen = tuple(seen)
        self.argv = tuple(argv)

    def __getitem__(self, name):
        return self.flags[name]

    def __repr__(self):
        return format_nonexp_repr(self, ['name', 'flags', 'args'])


_command_line = None


def get_command_line():
    """The process-wide default FlagSet, named after the running
    program and created with EXIT_ON_ERROR on first use.
    """
    global _command_line
    if _command_line is None:
        name = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else ''
        _command_line = FlagSet(name, error_handling=EXIT_ON_ERROR)
    return _command_line


def parse(args=None):
    "Parse *args* (default: ``sys.argv[1:]``) with the default FlagSet."
    return get_command_line().parse(args)
