# Design (and some implementation) of this owes heavily to Click's
# CliRunner

"""Utilities for testing programs built on flagset. TestClient runs a
FlagSet or CommandSet with stdin, stdout, stderr and environment
variables swapped out, and records the outcome::

  client = TestClient(fs)
  res = client.invoke(['-n', 'nope'])
  assert res.exit_code == 2
  assert 'invalid value' in res.stderr

Since FlagSet output is looked up at write time, a FlagSet created
with the default output writes to the captured stderr.
"""

import io
import os
import sys
import shlex
import contextlib


def make_input_stream(input, encoding):
    if input is None:
        input = b''
    elif isinstance(input, str):
        input = input.encode(encoding)
    elif not isinstance(input, bytes):
        raise TypeError('expected bytes, text, or None, not: %r' % input)
    return io.BytesIO(input)


class Result(object):
    """Holds the captured result of an invoked FlagSet or CommandSet.

    Args:
       test_client (TestClient): The client that produced the result.
       stdout_bytes (bytes): Everything written to stdout.
       stderr_bytes (bytes): Everything written to stderr, or None if
          stderr was mixed into stdout.
       exit_code (int): 0 on a clean return, otherwise the code of the
          SystemExit raised, or 1 for other exceptions.
       exc_info (tuple): The ``sys.exc_info()`` of any exception
          raised.
       return_value: What ``parse()`` returned, if anything.
    """
    def __init__(self, test_client, stdout_bytes, stderr_bytes, exit_code,
                 exc_info, return_value=None):
        self.test_client = test_client
        self.stdout_bytes = stdout_bytes
        self.stderr_bytes = stderr_bytes
        self.exit_code = exit_code
        self.exc_info = exc_info
        self.return_value = return_value

    @property
    def exception(self):
        return self.exc_info[1] if self.exc_info else None

    @property
    def stdout(self):
        """The standard output as unicode string."""
        return self.stdout_bytes.decode(self.test_client.encoding, 'replace') \
            .replace('\r\n', '\n')

    @property
    def stderr(self):
        """The standard error as unicode string."""
        if self.stderr_bytes is None:
            raise ValueError("stderr not separately captured")
        return self.stderr_bytes.decode(self.test_client.encoding, 'replace') \
            .replace('\r\n', '\n')

    def __repr__(self):
        return '<%s %s>' % (
            self.__class__.__name__,
            repr(self.exception) if self.exception else ('exit_code=%s' % self.exit_code),
        )


class TestClient(object):
    """Invokes *target*, anything with a ``parse(args)`` method, in an
    isolated environment.

    Args:
       target: A FlagSet or CommandSet.
       env (dict): Environment variables set for every invocation. A
          value of None unsets the variable.
       mix_stderr (bool): Send stderr to the stdout capture. Defaults
          to False.
       reraise (bool): Re-raise exceptions other than SystemExit.
          Defaults to True.
    """
    def __init__(self, target, env=None, mix_stderr=False, reraise=True):
        self.target = target
        self.base_env = env or {}
        self.reraise = reraise
        self.mix_stderr = mix_stderr
        self.encoding = 'utf8'

    @contextlib.contextmanager
    def isolate(self, input=None, env=None):
        input_stream = make_input_stream(input, self.encoding)
        old_stdin, old_stdout, old_stderr = sys.stdin, sys.stdout, sys.stderr

        full_env = dict(self.base_env)
        if env:
            full_env.update(env)

        bytes_output = io.BytesIO()
        bytes_error = None
        sys.stdin = io.TextIOWrapper(input_stream, encoding=self.encoding)
        sys.stdout = io.TextIOWrapper(bytes_output, encoding=self.encoding)
        if self.mix_stderr:
            sys.stderr = sys.stdout
        else:
            bytes_error = io.BytesIO()
            sys.stderr = io.TextIOWrapper(bytes_error, encoding=self.encoding)

        old_env = {}
        try:
            _sync_env(os.environ, full_env, old_env)
            yield (bytes_output, bytes_error)
        finally:
            _sync_env(os.environ, old_env)

            # the wrappers buffer, flush before the streams are read
            sys.stdout.flush()
            sys.stderr.flush()
            sys.stdout = old_stdout
            sys.stderr = old_stderr
            sys.stdin = old_stdin
        return

    def invoke(self, args, input=None, env=None):
        """Parse *args*, a list of strings or a shell-style string, with
        the target and return a :class:`Result`.
        """
        if isinstance(args, str):
            args = shlex.split(args)

        with self.isolate(input=input, env=env) as (stdout, stderr):
            exc_info = None
            exit_code = 0
            res = None

            try:
                res = self.target.parse(list(args or ()))
            except SystemExit as se:
                exc_info = sys.exc_info()
                exit_code = se.code
                if exit_code is None:
                    exit_code = 0
                if not isinstance(exit_code, int):
                    sys.stdout.write(str(exit_code))
                    sys.stdout.write('\n')
                    exit_code = 1
            except Exception:
                if self.reraise:
                    raise
                exit_code = 1
                exc_info = sys.exc_info()
            finally:
                sys.stdout.flush()
                sys.stderr.flush()
                stdout_bytes = stdout.getvalue()
                stderr_bytes = stderr.getvalue() if stderr is not None else None

        return Result(test_client=self,
                      stdout_bytes=stdout_bytes,
                      stderr_bytes=stderr_bytes,
                      exit_code=exit_code,
                      exc_info=exc_info,
                      return_value=res)


def _sync_env(env, new, backup=None):
    for key, value in new.items():
        if backup is not None:
            backup[key] = env.get(key)
        if value is not None:
            env[key] = value
            continue
        env.pop(key, None)
    return backup
