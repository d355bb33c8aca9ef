#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#
"""Base class of the commands run by the dscpublish CLI.

A command is loaded by `dscpublish.cmdmgr`, built from its command line
arguments with `Command.from_cli`, and then run with `Command.execute`. See
`dscpublish.commands` for the included commands.
"""

import sys


class Command:
    """Abstract base class of a dscpublish CLI command.

    Subclasses must implement `execute`. Commands intended for the CLI must also
    override `from_cli` to parse their arguments.
    """

    @classmethod
    def from_cli(cls, parser, argv, cfg):  # pylint: disable=unused-argument
        """Factory to build the command from CLI args and user configuration.

        The CLI splits its arguments into three parts:

            dscpublish --log-level INFO publish site.ps1 --force
                       ^^^^^^^^^^^^^^^^ ^^^^^^^ ^^^^^^^^^^^^^^^^
                          main args     command    cmd args

        `parser` is an `argparse.ArgumentParser` on which the command defines
        its own flags and arguments. This method must parse `argv`, the list of
        `cmd args`, and return an instance of the command. The parser exits the
        program if the arguments are invalid.

        `cfg` is a callable with the interface of `dscpublish.config.Config.get`
        whose keys are relative to the command's section of the user config.
        For the `publish` command and the following config:

            Commands:
              publish:
                container: configs

        `cfg('container', type=ContainerName)` returns `'configs'`. This makes
        it easy to default a flag to a value in the config:

            parser.add_argument(
                '--container',
                default=cfg('container', type=ContainerName),
                help='blob container to upload to')
        """
        return cls(**vars(parser.parse_args(argv)))

    def execute(self, session_provider, out=sys.stdout):
        """Runs the command and writes its result to `out`.

        `session_provider` is a callable returning the
        `dscpublish.session.SessionProvider` built by the credential plug-in.
        It is only called by commands that need storage credentials, so other
        commands never prompt the user for them.
        """
        raise NotImplementedError
