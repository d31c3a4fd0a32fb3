
from boltons.iterutils import unique


class FlagSetException(Exception):
    """The basest base exception flagset has. Rarely directly
    instantiated if ever, but useful for catching.
    """
    pass


class ArgumentParseError(FlagSetException):
    """A base exception used for all errors raised during argument
    parsing, i.e., errors caused by the user's input rather than the
    program's flag definitions.

    Most subtypes have a ".from_parse()" classmethod that creates an
    exception message from the values available during the parse
    process.
    """
    pass


class BadFlagSyntax(ArgumentParseError):
    """Raised when a dashed token cannot be a flag at all, e.g.,
    ``---x`` or ``-=x``.
    """
    @classmethod
    def from_parse(cls, token):
        return cls('bad flag syntax: %s' % token)


class UnknownFlag(ArgumentParseError):
    """
    Raised when an unrecognized flag is passed.
    """
    @classmethod
    def from_parse(cls, flagset, flag_name):
        # TODO: add edit distance calculation
        ret = cls('flag provided but not defined: -%s' % flag_name)
        ret.flag_name = flag_name
        return ret


class MissingFlagArgument(ArgumentParseError):
    """Raised when a flag which takes a value is the last token of the
    argument list.
    """
    @classmethod
    def from_parse(cls, flag, name):
        ret = cls('flag needs an argument: -%s' % name)
        ret.flag = flag
        return ret


class InvalidFlagArgument(ArgumentParseError):
    """Raised when the argument passed to a flag (the value glued to it,
    after an ``=``, or directly after it in argv) fails to parse with
    the flag's value adapter.
    """
    @classmethod
    def from_parse(cls, flag, name, arg, exc=None):
        if getattr(flag.value, 'is_bool_flag', False):
            tmpl = 'invalid boolean value %r for -%s'
        else:
            tmpl = 'invalid value %r for flag -%s'
        msg = tmpl % (arg, name)
        label = getattr(flag.value, 'display_name', None)
        if label:
            msg += ', expected a valid %s' % label
        if exc:
            msg += ' (got error: %s)' % exc
        if arg.startswith('-'):
            msg += '. (Did you forget to pass an argument?)'

        ret = cls(msg)
        ret.flag = flag
        return ret


class InvalidSubcommand(ArgumentParseError):
    """
    Raised when an unrecognized subcommand is passed.
    """
    @classmethod
    def from_parse(cls, cmdset, subcmd_name):
        valid_subcmds = unique(cmdset.subcmd_map.keys())
        msg = 'subcommand provided but not defined: %s' % subcmd_name
        if valid_subcmds:
            msg += ', choose from: %s' % ', '.join(valid_subcmds)
        return cls(msg)


class FlagDefinitionError(FlagSetException, ValueError):
    """Base exception for mistakes in the program's own flag
    definitions. These are raised at registration time, regardless of
    the FlagSet's error handling policy, and are not meant to be
    caught and recovered from at runtime.
    """
    pass


class FlagRedefined(FlagDefinitionError):
    """Raised when a flag name or alias is registered twice on the same
    FlagSet. The reserved help and version names are exempt.
    """
    @classmethod
    def from_parse(cls, flagset_name, flag_name):
        if not flagset_name:
            return cls('flag redefined: %s' % flag_name)
        return cls('%s flag redefined: %s' % (flagset_name, flag_name))


class InvalidMatchValue(FlagDefinitionError):
    """Raised when a fixed value (match value or default) does not fit
    the type of the value adapter it is bound to.
    """
    pass


class ConflictingBehavior(FlagDefinitionError):
    """Raised when a flag combines behaviors which cannot work together,
    like POSIX_SHORT and GREEDY.
    """
    pass


class HelpRequested(FlagSetException):
    """Raised by parsing when ``-h`` or ``--help`` is encountered. Not an
    error: the usage text has already been written.
    """
    pass


class VersionRequested(FlagSetException):
    """Raised by parsing when ``-V`` or ``--version`` is encountered. Not
    an error: the version text has already been written.
    """
    pass


class CommandLineError(FlagSetException, SystemExit):
    """Raised under the EXIT_ON_ERROR policy. Uncaught, it exits the
    process with *code*.
    """
    def __init__(self, msg, code=2):
        SystemExit.__init__(self, msg)
        self.code = code


class ParsePanic(RuntimeError):
    """Raised under the PANIC_ON_ERROR policy. Deliberately not an
    ArgumentParseError, so that it escapes handlers written for
    recoverable parse errors. The original error is available as
    ``__cause__``.
    """
    pass
