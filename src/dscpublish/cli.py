#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""The dscpublish CLI packages and publishes DSC configurations.

## Overview

The CLI runs one command per invocation. The included commands are listed in
`dscpublish.commands`. The general syntax is:

    $ dscpublish [core options] [plug-in options] command [command options]

To view the core and plug-in options, invoke the CLI with only `--help`. To
view the options of a command, add `--help` after the name of the command.
Invoking the CLI without a command lists the available commands.

For example, to build an archive for `site.ps1` next to it, and then upload
the same configuration to the default container of a storage account:

    $ dscpublish publish site.ps1 --archive-path site.zip
    /home/me/site.zip

    $ dscpublish publish site.ps1 --storage-account contosodsc
    https://contosodsc.blob.core.windows.net/windows-powershell-dsc/site.ps1.zip

## Configuration

Defaults for most options are read from a YAML configuration file, by default
`~/.dscpublish.yaml`. Set the `DSCPUBLISH_CONFIG` environment variable to use
another file. All sections are optional:

    CLI:
      log_level: ERROR
      cmd_path:
        - STRING

    Credentials:
      plugin: dscpublish.plugins.creds.azure.Default
      options:
        ARG: VALUE

    Commands:
      publish:
        storage_account: STRING
        container: STRING
        module_path:
          - STRING
        force: BOOLEAN
      resource_id:
        subscription: STRING

`cmd_path` lists Python packages searched for user-defined commands in
addition to `dscpublish.commands`. The `Credentials` block selects the
credential plug-in, see `dscpublish.plugins.creds.azure`.

## Troubleshooting

Errors are printed without a traceback. Set the `DSCPUBLISH_TRACE` environment
variable to `1` to print it. To see what the publisher does at each stage, use
`--log-level INFO`:

    $ DSCPUBLISH_TRACE=1 dscpublish --log-level INFO publish site.ps1 ...
"""

import argparse
import logging
import os
import sys
import traceback
from functools import partial
from pathlib import Path

from dscpublish import __version__
from dscpublish.argparse import RawAndDefaultsFormatter
from dscpublish.cmdmgr import CommandManager
from dscpublish.config import Config, Dotted, List, LogLevel
from dscpublish.plugmgr import PluginManager
from dscpublish.session import SessionProvider

LOG = logging.getLogger(__name__)

BUILTIN_COMMANDS = "dscpublish.commands"
DEFAULT_CREDENTIALS = "dscpublish.plugins.creds.azure.Default"

SHORT_DESCRIPTION = """
Packages a DSC configuration and the modules it imports into a zip archive
and publishes it locally or to Azure blob storage.

The list of available commands, and brief descriptions of each, can be
displayed by omitting the command. Each command can have its own set of
command line arguments, which can be viewed by passing --help after the
command.
    """.strip()


# setup.py establishes this as the entry point for the dscpublish CLI.
def main(argv=None):
    """The main entry point for the `dscpublish` CLI tool.

    Exits with a `0` status code upon success. Upon error, prints the error
    message to standard error and exits with `1`. The stack trace is only
    printed if the `DSCPUBLISH_TRACE` environment variable is set.
    """
    try:
        _cli(sys.argv[1:] if argv is None else argv)

    except Exception as e:  # pylint: disable=broad-except
        if os.getenv("DSCPUBLISH_TRACE"):
            traceback.print_exc(file=sys.stderr)

        print(e, file=sys.stderr)
        sys.exit(1)


def config_filename():
    """Returns the path to the user configuration."""
    return os.environ.get("DSCPUBLISH_CONFIG", Path.home() / ".dscpublish.yaml")


def _cli(argv):
    """Parses command line arguments and runs the selected command.

    Arguments are parsed in four stages, as the main CLI, the credential
    plug-in, and the command each define their own:

                  main and plug-in args    command      cmd args
               vvvvvvvvvvvvvvvvvvvvvvvvvvv vvvvvvv vvvvvvvvvvvvvvvvvvvv
    dscpublish --log-level INFO --ad-authority X publish site.ps1 --force

    1. Parse the *known* main args.
    2. Parse the *known* args of the credential plug-in.
    3. Parse the remaining args to get the command and its args.
    4. Parse the command's args in `CommandManager.instantiate_command`.
    """
    config = Config.from_file(config_filename())
    cfg = partial(config.get, "CLI")

    # STAGE 1. Help is added in stage 3 so it includes the plug-in flags.
    parser = argparse.ArgumentParser(
        "dscpublish",
        add_help=False,
        allow_abbrev=False,
        formatter_class=RawAndDefaultsFormatter,
        description=SHORT_DESCRIPTION,
    )

    parser.add_argument(
        "--version", action="version", version="%(prog)s " + __version__
    )

    parser.add_argument(
        "--log-level",
        default=cfg("log_level", type=LogLevel, default="ERROR"),
        choices=["DEBUG", "INFO", "WARN", "WARNING", "ERROR", "CRITICAL"],
        help="set the logging level",
    )

    args, remaining_argv = parser.parse_known_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(name)s %(levelname)s [%(threadName)s] %(message)s",
    )

    # STAGE 2
    plugin_mgr = PluginManager(config, parser, args, remaining_argv)
    plugin_mgr.parse_args("Credentials", default=DEFAULT_CREDENTIALS)

    # STAGE 3
    parser.add_argument("-h", "--help", action="help")
    parser.add_argument("command", nargs="?", help="command to execute")
    parser.add_argument(
        "arguments", nargs=argparse.REMAINDER, default=[], help="arguments for command"
    )
    args = parser.parse_args(plugin_mgr.remaining_argv, plugin_mgr.args)

    cmd_path = cfg("cmd_path", type=List(Dotted), default=[])
    command_mgr = CommandManager.from_modules(BUILTIN_COMMANDS, *cmd_path)

    if not args.command:
        _print_valid_commands(command_mgr.commands(), out=sys.stdout)
        sys.exit(1)

    # STAGE 4
    try:
        command = command_mgr.instantiate_command(
            args.command, args.arguments, partial(config.get, "Commands", args.command)
        )

    # List the valid commands along with the error raised by main().
    except Exception:
        _print_valid_commands(command_mgr.commands(), out=sys.stderr)
        raise

    # Credentials are only built if the command asks for them.
    session_provider = partial(
        plugin_mgr.instantiate, "Credentials", must_be=SessionProvider
    )
    command.execute(session_provider, out=sys.stdout)


def _print_valid_commands(commands, out=sys.stdout):
    """Pretty print a table of commands.

    The argument is a dict where keys are the names and values are CLICommand
    classes from the command modules.
    """
    if not commands:
        print("No commands found, check cmd_path in your config", file=out)
        return

    print("The following are the available commands:\n", file=out)
    max_cmd_len = max(len(name) for name in commands)
    for name in sorted(commands):
        docstring = commands[name].__doc__ or ""
        print(f"{name:{max_cmd_len}}  {docstring}", file=out)
    print(file=out)


if __name__ == "__main__":
    main()
