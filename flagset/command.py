
import sys
from collections import OrderedDict

from boltons.iterutils import unique

from flagset.utils import (split_names,
                           process_command_name,
                           arg_to_subcmd,
                           docstring_to_doc,
                           format_nonexp_repr,
                           HELP_NAMES)
from flagset.errors import (ArgumentParseError,
                            InvalidSubcommand,
                            FlagDefinitionError,
                            HelpRequested)
from flagset.parser import CONTINUE_ON_ERROR, raise_for_policy
from flagset.helpers import DEFAULT_FORMATTER


class SubCommand(object):
    """A named callback registered with a :class:`CommandSet`. *func*
    is called with the list of arguments following the subcommand
    name.
    """
    def __init__(self, name, names, doc, func):
        self.name = name
        self.names = names
        self.doc = doc
        self.func = func

    def __repr__(self):
        return format_nonexp_repr(self, ['name', 'func'], ['doc'])


class CommandSet(object):
    """Dispatches the first argument to one of several subcommand
    callbacks, ``git``-style. Each callback usually builds its own
    :class:`~flagset.FlagSet` to parse the rest::

      def add(args):
          fs = FlagSet('add')
          force = fs.opt('f, force', 'allow adding ignored files').new_bool()
          fs.parse(args)
          ...

      cmds = CommandSet('git')
      cmds.add('add, a', None, add)
      cmds.parse(sys.argv[1:])

    Subcommand names are case-insensitive, and dashes and underscores
    are interchangeable. Errors are handled according to
    *error_handling*, as with FlagSet.
    """
    def __init__(self, name='', error_handling=CONTINUE_ON_ERROR, output=None,
                 formatter=None):
        self.name = name or ''
        self.error_handling = error_handling
        self._output = output
        self.formatter = formatter or DEFAULT_FORMATTER
        self.subcmd_map = OrderedDict()
        self._aliases = OrderedDict()
        self.args = []
        self.parsed = False

    @property
    def output(self):
        if self._output is not None:
            return self._output
        return sys.stderr

    @output.setter
    def output(self, output):
        self._output = output

    def add(self, name, doc, func):
        """Register *func* under one or more comma-separated names. If
        *doc* is None, the first paragraph of *func*'s docstring is
        used.
        """
        if not callable(func):
            raise TypeError('expected callable for subcommand %r, not: %r' % (name, func))
        split_names(name)  # validates
        # names keep their given order, the first is canonical (flags sort shortest first)
        names = unique([process_command_name(n.strip()) for n in name.split(',')])
        for n in names:
            if n in HELP_NAMES:
                raise FlagDefinitionError('subcommand name is reserved for help: %r' % n)
            if n in self.subcmd_map or n in self._aliases:
                raise FlagDefinitionError('subcommand redefined: %s' % n)
        if doc is None:
            doc = docstring_to_doc(func)

        subcmd = SubCommand(', '.join(names), names, doc, func)
        self.subcmd_map[names[0]] = subcmd
        for n in names[1:]:
            self._aliases[n] = subcmd
        return subcmd

    def lookup(self, name):
        name = arg_to_subcmd(name)
        return self.subcmd_map.get(name) or self._aliases.get(name)

    def get_subcmds(self):
        return list(self.subcmd_map.values())

    def print_usage(self):
        self.output.write(self.formatter.get_subcmd_usage_text(self))

    def parse(self, args=None):
        """Dispatch on the first of *args* (default: ``sys.argv[1:]``)
        and return the callback's result, or None if *args* is
        empty. Leading dashes on the subcommand name are ignored.
        """
        if args is None:
            args = sys.argv[1:]
        args = list(args)
        self.parsed = True
        if not args:
            self.args = []
            return None

        name = args[0]
        self.args = args[1:]
        if name.startswith('--'):
            name = name[2:]
        elif name.startswith('-'):
            name = name[1:]

        try:
            if name in HELP_NAMES:
                raise HelpRequested('help requested: %s' % name)
            subcmd = self.lookup(name)
            if subcmd is None:
                raise InvalidSubcommand.from_parse(self, name)
        except HelpRequested as hr:
            self.print_usage()
            raise_for_policy(self.error_handling, hr)
        except ArgumentParseError as ape:
            self.output.write(ape.args[0] + '\n')
            self.print_usage()
            raise_for_policy(self.error_handling, ape)

        return subcmd.func(list(self.args))
