import json
import textwrap

from flagset.utils import format_flag_label, unquote_usage, is_zero_value
from flagset.values import StringValue


class UsageFormatter(object):
    """Renders usage and version text for FlagSets and CommandSets.

    All of the formatting knobs are in *default_context*, and any of
    them can be overridden per instance by keyword argument::

      UsageFormatter(usage_label='Options:', width=72)

    Args:
       usage_label (str): Header used when the FlagSet has no name.
       named_usage_label (str): Header template used when the FlagSet
          has a name.
       flag_indent (str): Leading whitespace for each flag line.
       short_label_max (int): Flag labels up to this length keep their
          doc on the same line.
       inline_doc_separator (str): Separator between a short label and
          its doc.
       doc_indent (str): Leading whitespace for docs on their own line.
       subcmd_indent (str): Leading whitespace for subcommand lines.
       subcmd_doc_separator (str): Separator between a subcommand name
          and its doc.
       width (int): Wrap flag docs to this many columns. Defaults to
          None, meaning no wrapping.
    """
    default_context = {
        'usage_label': 'Usage:',
        'named_usage_label': 'Usage of %s:',
        'flag_indent': '  ',
        'short_label_max': 4,  # two spaces, dash, one letter
        'inline_doc_separator': '\t',
        'doc_indent': '    \t',
        'subcmd_indent': '    ',
        'subcmd_doc_separator': '    ',
        'width': None,
    }

    def __init__(self, **kwargs):
        ctx = {}
        for key, val in self.default_context.items():
            ctx[key] = kwargs.pop(key, val)
        if kwargs:
            raise TypeError('unexpected keyword arguments: %r' % list(kwargs.keys()))
        self.ctx = ctx

    def get_usage_line(self, name):
        if not name:
            return self.ctx['usage_label']
        return self.ctx['named_usage_label'] % name

    def get_flag_text(self, flag):
        """Format a single flag's entry, e.g.::

          -n, --lines int
            	print the first NUM lines (default 10)

        """
        ctx = self.ctx
        ret = ctx['flag_indent'] + format_flag_label(flag)
        value_name, usage = unquote_usage(flag)
        if value_name:
            ret += ' ' + value_name

        if len(ret) <= ctx['short_label_max']:
            # boolean flags of one letter are common enough to keep
            # their usage on the same line
            ret += ctx['inline_doc_separator']
        else:
            ret += '\n' + ctx['doc_indent']

        if ctx['width'] and usage:
            usage = '\n'.join(textwrap.wrap(usage, ctx['width']))
        ret += usage.replace('\n', '\n' + ctx['doc_indent'])

        def_value = flag.def_value
        if def_value is not None and not is_zero_value(flag, def_value):
            if isinstance(flag.value, StringValue):
                ret += ' (default %s)' % json.dumps(def_value, ensure_ascii=False)
            else:
                ret += ' (default %s)' % def_value
        return ret

    def get_usage_text(self, flagset):
        lines = []
        if flagset.author:
            lines.extend([flagset.author, ''])
        lines.append(self.get_usage_line(flagset.name))
        for flag in flagset.get_flags():
            lines.append(self.get_flag_text(flag))
        return '\n'.join(lines) + '\n'

    def get_version_text(self, flagset):
        name = flagset.name + ' ' if flagset.name else ''
        return '%s%s\n' % (name, flagset.version or '')

    def get_subcmd_usage_text(self, cmdset):
        ctx = self.ctx
        lines = [self.get_usage_line(cmdset.name)]
        for subcmd in sorted(cmdset.get_subcmds(), key=lambda s: s.name):
            line = ctx['subcmd_indent'] + subcmd.name + ctx['subcmd_doc_separator']
            lines.append((line + (subcmd.doc or '')).rstrip())
        return '\n'.join(lines) + '\n'


DEFAULT_FORMATTER = UsageFormatter()
