"""A command-line flag parser with short and long aliases, POSIX-style
short flag clusters, greedy multi-value flags, pattern-matched flags,
declaration binding, and subcommands.
"""

from setuptools import setup


__author__ = 'Mahmoud Hashemi'
__version__ = '0.1.0'
__contact__ = 'mahmoud@hatnote.com'
__license__ = 'BSD'


setup(name='flagset',
      version=__version__,
      description="A command-line flag parser with aliases, POSIX short flag clusters, and greedy flags.",
      long_description=__doc__,
      author=__author__,
      author_email=__contact__,
      packages=['flagset', 'flagset.test'],
      include_package_data=True,
      zip_safe=False,
      license=__license__,
      platforms='any',
      install_requires=['boltons>=20.0.0'],
      extras_require={'test': ['pytest']},
      classifiers=[
          'Topic :: Utilities',
          'Intended Audience :: Developers',
          'Topic :: Software Development :: Libraries',
          'Programming Language :: Python :: 3.7',
          'Programming Language :: Python :: 3.8',
          'Programming Language :: Python :: 3.9',
          'Programming Language :: Python :: 3.10',
          'Programming Language :: Python :: 3.11',
          'Programming Language :: Python :: 3.12',
          'Programming Language :: Python :: 3 :: Only',
          'Programming Language :: Python :: Implementation :: CPython',
          'Programming Language :: Python :: Implementation :: PyPy', ]
      )
