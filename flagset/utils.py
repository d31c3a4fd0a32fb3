import re

from boltons.iterutils import unique


# keep it just to subset of valid ASCII python identifiers for now
VALID_NAME_RE = re.compile(r"^[A-Za-z][-_A-Za-z0-9]*\Z")

RESERVED_NAMES = ('h', 'help', 'V', 'version')
HELP_NAMES = ('h', 'help')
VERSION_NAMES = ('V', 'version')


def split_names(name):
    """Split a comma-separated flag name like ``"lines, n"`` into its
    canonical display name and the list of individual names.

    Names are whitespace-stripped and sorted shortest first (stable,
    so equal-length names keep their order). The canonical name joins
    them with ``", "``::

      >>> split_names('lines, n')
      ('n, lines', ['n', 'lines'])
      >>> split_names('verbose')
      ('verbose', ['verbose'])

    """
    if not isinstance(name, str):
        raise TypeError('expected flag name as a string, not: %r' % (name,))
    if ',' not in name:
        return name, [name]
    names = [n.strip() for n in name.split(',')]
    if not all(names):
        raise ValueError('expected comma-separated flag names, not: %r' % name)
    names = sorted(unique(names), key=len)
    return ', '.join(names), names


def join_names(names):
    "The inverse of split_names(), used for pattern flags' short/long lists."
    names = sorted(unique([n.strip() for n in names if n.strip()]), key=len)
    return ', '.join(names), names


def is_reserved(name):
    "True if every individual name in *name* is a reserved help/version name."
    _, names = split_names(name)
    return all(n in RESERVED_NAMES for n in names)


def process_command_name(name):
    """Validate and canonicalize a subcommand's name, generally at
    subcommand addition. Only letters, numbers, '-', and/or '_'. Must
    begin with a letter, and no trailing underscores or dashes.

    Python keywords are allowed, as subcommands are never used as
    attributes or variables.
    """
    if not name or not isinstance(name, str):
        raise ValueError('expected non-zero length string for subcommand name, not: %r' % name)

    if name.endswith('-') or name.endswith('_'):
        raise ValueError('expected subcommand name without trailing dashes'
                         ' or underscores, not: %r' % name)

    name_match = VALID_NAME_RE.match(name)
    if not name_match:
        raise ValueError('valid subcommand name must begin with a letter, and'
                         ' consist only of letters, digits, underscores, and'
                         ' dashes, not: %r' % name)

    return arg_to_subcmd(name)


def arg_to_subcmd(arg):
    return arg.lower().replace('-', '_')


def format_flag_label(flag):
    """The default flag label formatter, used in usage output, e.g.,
    ``-n, --lines``. Every alias after the first gets a double dash.
    """
    return '-' + flag.name.replace(', ', ', --')


def unquote_usage(flag):
    """Extract a back-quoted value name from a flag's usage string and
    return it alongside the un-quoted usage. Given "a `name` to show"
    it returns ("name", "a name to show").

    If there are no back quotes, the name is the value adapter's
    display name, which is empty for boolean flags.
    """
    usage = flag.usage or ''
    start = usage.find('`')
    if start != -1:
        end = usage.find('`', start + 1)
        if end != -1:
            name = usage[start + 1:end]
            return name, usage[:start] + name + usage[end + 1:]
    return getattr(flag.value, 'display_name', 'value'), usage


def is_zero_value(flag, value_text):
    """Guesses whether the string represents the zero value for a
    flag. It is not accurate but in practice works OK.
    """
    try:
        zero_text = flag.value.__class__().render()
    except Exception:
        zero_text = None
    if value_text == zero_text:
        return True
    return value_text in ('false', '', '0', '[]')


def unwrap_text(text):
    all_grafs = []
    cur_graf = []
    for line in text.splitlines():
        line = line.strip()
        if line:
            cur_graf.append(line)
        else:
            all_grafs.append(' '.join(cur_graf))
            cur_graf = []
    if cur_graf:
        all_grafs.append(' '.join(cur_graf))
    return '\n'.join(all_grafs)


def docstring_to_doc(func):
    "First paragraph of a function's docstring, unwrapped onto one line."
    doc = getattr(func, '__doc__', None)
    if not doc:
        return ''

    unwrapped = unwrap_text(doc)
    try:
        ret = [g for g in unwrapped.splitlines() if g][0]
    except IndexError:
        ret = ''

    return ret


def format_nonexp_repr(obj, req_names=None, opt_names=None, opt_key=None):
    """Format a non-expression-style repr

    Some object reprs look like object instantiation, e.g., App(r=[], mw=[]).

    This makes sense for smaller, lower-level objects whose state
    roundtrips. But a lot of objects contain values that don't
    roundtrip, like value adapters and functions.

    For those objects, there is the non-expression style repr, which
    mimic's Python's default style to make a repr like this:

    <Flag name='n, lines' value=<IntValue 0>>
    """
    cn = obj.__class__.__name__
    req_names = req_names or []
    opt_names = opt_names or []
    all_names = unique(req_names + opt_names)

    if opt_key is None:
        opt_key = lambda v: v is None
    assert callable(opt_key)

    items = [(name, getattr(obj, name, None)) for name in all_names]
    labels = ['%s=%r' % (name, val) for name, val in items
              if not (name in opt_names and opt_key(val))]
    if not labels:
        labels = ['id=%s' % id(obj)]
    ret = '<%s %s>' % (cn, ' '.join(labels))
    return ret


def format_exp_repr(obj, pos_names, req_names=None, opt_names=None, opt_key=None):
    cn = obj.__class__.__name__
    req_names = req_names or []
    opt_names = opt_names or []
    all_names = unique(req_names + opt_names)

    if opt_key is None:
        opt_key = lambda v: v is None
    assert callable(opt_key)

    args = [getattr(obj, name, None) for name in pos_names]

    kw_items = [(name, getattr(obj, name, None)) for name in all_names]
    kw_items = [(name, val) for name, val in kw_items
                if not (name in opt_names and opt_key(val))]

    return format_invocation(cn, args, kw_items)


def format_invocation(name='', args=(), kwargs=None):
    kwargs = kwargs or {}
    a_text = ', '.join([repr(a) for a in args])
    if isinstance(kwargs, dict):
        kwarg_items = kwargs.items()
    else:
        kwarg_items = kwargs
    kw_text = ', '.join(['%s=%r' % (k, v) for k, v in kwarg_items])

    star_args_text = a_text
    if star_args_text and kw_text:
        star_args_text += ', '
    star_args_text += kw_text

    return '%s(%s)' % (name, star_args_text)
