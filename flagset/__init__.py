from flagset.parser import (Flag,
                            FlagSet,
                            ParseResult,
                            ArgToken,
                            classify_token,
                            get_command_line,
                            parse,
                            CONTINUE_ON_ERROR,
                            EXIT_ON_ERROR,
                            PANIC_ON_ERROR,
                            NOT_SET,
                            POSIX,
                            POSIX_SHORT,
                            GREEDY,
                            REGEX_KEY_IS_VALUE,
                            NOT_VALUE)

from flagset.errors import (FlagSetException,
                            ArgumentParseError,
                            BadFlagSyntax,
                            UnknownFlag,
                            MissingFlagArgument,
                            InvalidFlagArgument,
                            InvalidSubcommand,
                            FlagDefinitionError,
                            FlagRedefined,
                            InvalidMatchValue,
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
                            SliceValue,
                            BoolSliceValue,
                            Int64SliceValue,
                            StringSliceValue,
                            DurationSliceValue)
from flagset.command import CommandSet
from flagset.binding import Field, parse_struct
from flagset.helpers import UsageFormatter
