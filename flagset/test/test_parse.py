import io
import sys

import pytest

import flagset.parser
from flagset import (FlagSet,
                     StringValue,
                     IntValue,
                     Int64SliceValue,
                     classify_token,
                     get_command_line,
                     POSIX,
                     GREEDY,
                     REGEX_KEY_IS_VALUE,
                     EXIT_ON_ERROR,
                     PANIC_ON_ERROR,
                     ArgumentParseError,
                     BadFlagSyntax,
                     UnknownFlag,
                     MissingFlagArgument,
                     InvalidFlagArgument,
                     InvalidMatchValue,
                     HelpRequested,
                     VersionRequested,
                     CommandLineError,
                     ParsePanic)


def make_fs(**kw):
    kw.setdefault('output', io.StringIO())
    return FlagSet('test', **kw)


def test_classify_token():
    tok = classify_token('--lines=10')
    assert tok.kind == 'flag'
    assert tok.name == 'lines'
    assert tok.num_dashes == 2
    assert tok.has_value and tok.value == '10'

    tok = classify_token('-x=')
    assert tok.name == 'x'
    assert tok.has_value and tok.value == ''

    tok = classify_token('-x')
    assert tok.num_dashes == 1
    assert not tok.has_value and tok.value is None

    assert classify_token('-x=a=b').value == 'a=b'
    assert classify_token('-').kind == 'positional'
    assert classify_token('file.txt').kind == 'positional'
    assert classify_token('').kind == 'positional'
    assert classify_token('--').kind == 'terminator'

    for bad in ('---x', '-=x', '--=x'):
        with pytest.raises(BadFlagSyntax, match='bad flag syntax: ' + bad):
            classify_token(bad)


def test_bool_flag():
    fs = make_fs()
    verbose = fs.opt('v, verbose', 'be chatty').new_bool()
    fs.parse(['-v', 'false'])
    assert verbose.get() is True
    # booleans never consume the next token
    assert fs.args == ['false']

    fs = make_fs()
    verbose = fs.opt('v, verbose', 'be chatty').new_bool(True)
    fs.parse(['--verbose=false'])
    assert verbose.get() is False

    fs = make_fs()
    fs.opt('v').new_bool()
    with pytest.raises(InvalidFlagArgument, match="invalid boolean value 'yes' for -v"):
        fs.parse(['-v=yes'])


@pytest.mark.parametrize('argv', [['-n', '5'],
                                  ['-n=5'],
                                  ['--n', '5'],
                                  ['--lines', '5'],
                                  ['-lines=5'],
                                  ['--lines=5']])
def test_value_flag_forms(argv):
    fs = make_fs()
    lines = fs.opt('n, lines', 'number of lines').new_int(10)
    res = fs.parse(argv)
    assert lines.get() == 5
    assert res.flags['n, lines'] == 5
    assert res.args == ()
    assert res.seen == ('n, lines',)


def test_value_flag_takes_next_token_verbatim():
    fs = make_fs()
    sep = fs.opt('s', 'separator').new_string()
    fs.opt('v', 'verbose').new_bool()
    fs.parse(['-s', '-v'])
    assert sep.get() == '-v'
    assert not fs.is_set('v')

    fs = make_fs()
    sep = fs.opt('s', 'separator').new_string('x')
    fs.parse(['-s='])
    assert sep.get() == ''


def test_positional_interleaving_and_terminator():
    fs = make_fs()
    num = fs.opt('n', 'num').new_int()
    res = fs.parse(['a', '-n', '1', 'b', '--', '-n', '2', '--'])
    assert num.get() == 1
    assert fs.args == ['a', 'b', '-n', '2', '--']
    assert res.args == ('a', 'b', '-n', '2', '--')
    assert fs.narg() == 5
    assert fs.arg(0) == 'a'
    assert fs.arg(4) == '--'
    assert fs.arg(5) == ''
    assert fs.arg(-1) == ''

    # a lone dash is conventionally stdin
    fs = make_fs()
    fs.parse(['-'])
    assert fs.args == ['-']


def test_missing_and_invalid_argument():
    fs = make_fs()
    fs.opt('n, lines', 'num').new_int()
    with pytest.raises(MissingFlagArgument, match='flag needs an argument: -lines'):
        fs.parse(['--lines'])

    with pytest.raises(InvalidFlagArgument) as exc_info:
        fs.parse(['-n', 'abc'])
    msg = str(exc_info.value)
    assert msg.startswith("invalid value 'abc' for flag -n, expected a valid int")

    with pytest.raises(InvalidFlagArgument, match='Did you forget to pass an argument'):
        fs.parse(['-n', '-5x'])


def test_unknown_flag():
    out = io.StringIO()
    fs = FlagSet('test', output=out)
    with pytest.raises(UnknownFlag, match='flag provided but not defined: -z'):
        fs.parse(['-z'])
    assert fs.args == []
    assert out.getvalue().startswith('flag provided but not defined: -z\nUsage of test:\n')

    with pytest.raises(UnknownFlag) as exc_info:
        fs.parse(['--zed=1'])
    assert exc_info.value.flag_name == 'zed'


def test_values_kept_on_error():
    fs = make_fs()
    num = fs.opt('n', 'num').new_int()
    with pytest.raises(UnknownFlag):
        fs.parse(['a', '-n', '5', '-z', 'b'])
    assert num.get() == 5
    assert fs.is_set('n')
    assert fs.args == ['a', 'b']

    with pytest.raises(BadFlagSyntax):
        fs.parse(['---n', 'c'])
    # the offending token is left unparsed
    assert fs.args == ['---n', 'c']


def test_help_and_version():
    out = io.StringIO()
    fs = FlagSet('test', output=out, version='1.2.3')
    fs.opt('n', 'num').new_int()

    for argv in (['-h'], ['--help'], ['-help'], ['-n', '1', '-h', '-z']):
        with pytest.raises(HelpRequested):
            fs.parse(argv)
    assert out.getvalue().startswith('Usage of test:\n')

    out.truncate(0)
    out.seek(0)
    with pytest.raises(VersionRequested):
        fs.parse(['--version'])
    assert out.getvalue() == 'test 1.2.3\n'

    # help is handled before flag lookup, even when redefined
    fs.opt('h, help', 'custom help').new_bool()
    with pytest.raises(HelpRequested):
        fs.parse(['-h'])


def test_custom_usage_func():
    calls = []
    fs = make_fs(usage=lambda: calls.append('usage'))
    with pytest.raises(HelpRequested):
        fs.parse(['-h'])
    with pytest.raises(UnknownFlag):
        fs.parse(['-z'])
    assert calls == ['usage', 'usage']
    assert fs.output.getvalue() == 'flag provided but not defined: -z\n'


def test_default_output_is_stderr(capsys):
    fs = FlagSet('test')
    with pytest.raises(UnknownFlag):
        fs.parse(['--nope'])
    captured = capsys.readouterr()
    assert captured.out == ''
    assert captured.err.startswith('flag provided but not defined: -nope\n')


def test_exit_on_error():
    fs = make_fs(error_handling=EXIT_ON_ERROR)
    with pytest.raises(CommandLineError) as exc_info:
        fs.parse(['-z'])
    assert exc_info.value.code == 2
    assert isinstance(exc_info.value, SystemExit)
    assert isinstance(exc_info.value.__cause__, UnknownFlag)

    with pytest.raises(SystemExit) as exc_info:
        fs.parse(['--help'])
    assert exc_info.value.code == 0


def test_panic_on_error():
    fs = make_fs(error_handling=PANIC_ON_ERROR)
    fs.opt('n', 'num').new_int()
    with pytest.raises(ParsePanic) as exc_info:
        fs.parse(['-n'])
    assert not isinstance(exc_info.value, ArgumentParseError)
    assert isinstance(exc_info.value.__cause__, MissingFlagArgument)
    assert 'flag needs an argument: -n' in fs.output.getvalue()

    with pytest.raises(HelpRequested):
        fs.parse(['-h'])


def test_posix_cluster_bools():
    fs = make_fs()
    flags = dict([(c, fs.opt(c, 'flag %s' % c).flags(POSIX).new_bool())
                  for c in 'tsnEebA'])
    fs.parse(['-tsnEebA'])
    assert all([v.get() for v in flags.values()])
    assert fs.nflag() == 7

    fs = make_fs()
    a = fs.opt('a').flags(POSIX).new_bool()
    b = fs.opt('b').flags(POSIX).new_bool(True)
    fs.parse(['-ab=false'])
    assert a.get() is True
    # inline values apply to the last character only
    assert b.get() is False


def test_posix_cluster_values():
    fs = make_fs()
    ignore = fs.opt('i', 'ignore case').flags(POSIX).new_bool()
    after = fs.opt('A', 'lines after').flags(POSIX).new_string()
    fs.parse(['-iA5'])
    assert ignore.get() is True
    assert after.get() == '5'

    fs.parse(['-iA', '66', 'file'])
    assert after.get() == '66'
    assert fs.args == ['file']

    with pytest.raises(MissingFlagArgument, match='flag needs an argument: -A'):
        fs.parse(['-iA'])


@pytest.mark.parametrize('argv', [['-n4'], ['-n', '4'], ['-n=4'], ['--lines=4']])
def test_posix_glued_value(argv):
    fs = make_fs()
    lines = fs.opt('n, lines', 'num').flags(POSIX).new_int()
    fs.parse(argv)
    assert lines.get() == 4


def test_posix_cluster_skips():
    fs = make_fs()
    a = fs.opt('a').flags(POSIX).new_bool()
    q = fs.opt('q').new_bool()
    fs.parse(['-aqx'])
    assert a.get() is True
    assert q.get() is False

    with pytest.raises(UnknownFlag, match='not defined: -xyz'):
        fs.parse(['-xyz'])

    # double dashes never cluster
    with pytest.raises(UnknownFlag, match='not defined: -aa'):
        fs.parse(['--aa'])

    # without any cluster-eligible flag there is no cluster resolution
    fs = make_fs()
    fs.opt('a').new_bool()
    with pytest.raises(UnknownFlag):
        fs.parse(['-aa'])


def test_posix_cluster_help():
    fs = make_fs()
    v = fs.opt('v').flags(POSIX).new_bool()
    t = fs.opt('T').flags(POSIX).new_bool()
    fs.parse(['-vTh'])
    assert v.get() and t.get()

    with pytest.raises(HelpRequested):
        fs.parse(['-hv'])


def test_posix_bool_slice():
    fs = make_fs()
    verbosity = fs.opt('v', 'verbosity').flags(POSIX).new_bool_slice()
    fs.parse(['-vvv'])
    assert verbosity.get() == [True, True, True]


def test_greedy():
    fs = make_fs()
    headers = fs.opt('H, header', 'request headers').flags(GREEDY).new_string_slice()
    url = fs.opt('url', 'request url').new_string()
    fs.parse(['-H', 'a', 'b', 'c', '-url', 'test.com'])
    assert headers.get() == ['a', 'b', 'c']
    assert url.get() == 'test.com'
    assert fs.args == []

    fs = make_fs()
    headers = fs.opt('H').flags(GREEDY).new_string_slice()
    fs.parse(['-H=a', 'b', '--', 'c'])
    assert headers.get() == ['a', 'b']
    assert fs.args == ['c']


def test_greedy_with_posix_cluster():
    fs = make_fs()
    query = fs.opt('q', 'query').flags(GREEDY).new_string_slice()
    count = fs.opt('c', 'count').flags(POSIX).new_bool()
    verbose = fs.opt('v', 'verbose').flags(POSIX).new_bool()
    fs.parse(['-q', 'hello', 'world', '12346', '-cv'])
    assert query.get() == ['hello', 'world', '12346']
    assert count.get() and verbose.get()


def test_greedy_unknown_flag_stops():
    fs = make_fs()
    fs.opt('H').flags(GREEDY).new_string_slice()
    with pytest.raises(UnknownFlag):
        fs.parse(['-H', 'a', '-z'])


def test_greedy_ignored_for_bools():
    fs = make_fs()
    fs.opt('b').flags(GREEDY).new_bool()
    fs.parse(['-b', 'x', 'y'])
    assert fs.args == ['x', 'y']


def _make_lines_fs():
    fs = make_fs()
    lines = fs.opt_opt(regex=r'^\d+$', short=['n'], long=['lines'],
                       usage='print the first `NUM` lines')
    return fs, lines.flags(POSIX | REGEX_KEY_IS_VALUE).new_int(10)


@pytest.mark.parametrize('argv, expected', [([], 10),
                                            (['-n+3'], 3),
                                            (['-n4'], 4),
                                            (['-3'], 3),
                                            (['-12'], 12),
                                            (['-n', '11'], 11),
                                            (['--lines=7'], 7)])
def test_pattern_flag(argv, expected):
    fs, lines = _make_lines_fs()
    fs.parse(argv)
    assert lines.get() == expected
    assert fs.args == []


def test_pattern_lookup():
    fs, _ = _make_lines_fs()
    flag = fs.lookup('lines')
    assert flag.name == 'n, lines'
    assert fs.lookup('n') is flag
    assert fs.lookup('42') is flag
    assert fs.lookup('x') is None

    fs.parse(['-8'])
    assert fs.is_set('lines')
    assert fs.seen.getlist('n, lines') == ['8']


def test_pattern_order():
    fs = make_fs()
    first = fs.opt_opt(regex='^v+$', usage='verbosity').new_bool()
    second = fs.opt_opt(regex='v', usage='anything with a v').new_bool()
    fs.parse(['-vvv'])
    assert first.get() is True
    assert second.get() is False


def test_match_var():
    fs = make_fs()
    mode = StringValue('auto')
    fs.opt('fast', 'go fast').match_var(mode, 'fast')
    fs.opt('slow', 'go slow').match_var(mode, 'slow')

    fs.parse(['--fast', 'x'])
    assert mode.get() == 'fast'
    assert fs.args == ['x']

    fs.parse(['--fast=ignored', '--slow'])
    assert mode.get() == 'slow'

    nums = Int64SliceValue()
    fs.opt('primes').match_var(nums, [2, 3, 5])
    fs.parse(['-primes'])
    assert nums.get() == [2, 3, 5]

    with pytest.raises(InvalidMatchValue):
        fs.opt('n').match_var(IntValue(), 'five')


def test_seen_tracking():
    fs = make_fs()
    fs.opt('n, lines', 'num').new_int()
    fs.opt('v, verbose').new_bool()
    fs.opt('q').new_bool()
    res = fs.parse(['-v', '-n', '1', '--lines', '2'])
    assert fs.is_set('n')
    assert fs.is_set('lines')
    assert fs.is_set('verbose')
    assert not fs.is_set('q')
    assert not fs.is_set('nope')
    assert fs.nflag() == 2
    assert res.seen == ('v, verbose', 'n, lines')
    assert fs.seen.getlist('n, lines') == ['n', 'lines']

    visited = []
    fs.visit(lambda f: visited.append(f.name))
    assert visited == ['n, lines', 'v, verbose']

    # each parse starts fresh
    fs.parse([])
    assert not fs.is_set('n')
    assert fs.nflag() == 0


def test_programmatic_set():
    fs = make_fs()
    num = fs.opt('n, lines', 'num').new_int()
    fs.set('lines', '5')
    assert num.get() == 5
    assert fs.is_set('n')

    with pytest.raises(UnknownFlag, match='no such flag -zed'):
        fs.set('zed', '1')
    with pytest.raises(InvalidFlagArgument):
        fs.set('n', 'five')


def test_parse_result():
    fs = make_fs()
    fs.opt('n, lines', 'num').new_int(3)
    res = fs.parse(['a', '-n', '5'])
    assert res.name == 'test'
    assert res['n, lines'] == 5
    assert res.flags['h, help'] is False
    assert list(res.flags) == ['V, version', 'h, help', 'n, lines']
    assert res.argv == ('a', '-n', '5')
    assert fs.parsed
    assert 'ParseResult' in repr(res)


def test_default_command_line(monkeypatch):
    monkeypatch.setattr(flagset.parser, '_command_line', None)
    monkeypatch.setattr(sys, 'argv', ['/usr/local/bin/prog', 'a', '--', '-b'])
    cl = get_command_line()
    assert cl.name == 'prog'
    assert cl.error_handling is EXIT_ON_ERROR
    assert get_command_line() is cl

    res = flagset.parser.parse()
    assert res.args == ('a', '-b')

    cl.output = io.StringIO()
    with pytest.raises(SystemExit) as exc_info:
        flagset.parser.parse(['-z'])
    assert exc_info.value.code == 2


def test_duration_out_of_range():
    fs = make_fs()
    fs.opt('d', 'delay').new_duration()
    with pytest.raises(InvalidFlagArgument, match="invalid value '9999999999999h' for flag -d"):
        fs.parse(['-d', '9999999999999h'])
    assert fs.output.getvalue().startswith("invalid value '9999999999999h' for flag -d")

    fs = make_fs(error_handling=EXIT_ON_ERROR)
    fs.opt('d', 'delay').new_duration()
    with pytest.raises(CommandLineError) as exc_info:
        fs.parse(['-d', '9999999999999h'])
    assert exc_info.value.code == 2
    assert 'Usage of test:' in fs.output.getvalue()
