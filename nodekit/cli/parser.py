"""
NodeKit CLI argument parser.

This module implements the command-line interface for NodeKit using argparse.
"""

import argparse
import importlib
import logging
import sys
from pathlib import Path
from typing import List, Optional

from nodekit import __version__

logger = logging.getLogger(__name__)


class CLI:
    """NodeKit command-line interface."""

    def __init__(self):
        """Initialize CLI with argument parser."""
        self.parser = self._create_parser()

    def _create_parser(self) -> argparse.ArgumentParser:
        """
        Create argument parser with all subcommands.

        Returns:
            Configured ArgumentParser instance
        """
        parser = argparse.ArgumentParser(
            prog="nodekit",
            description="NodeKit - project-local Node.js provisioning",
            epilog='Use "nodekit COMMAND --help" for command-specific help',
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )

        # Global options
        parser.add_argument(
            "--version", action="version", version=f"NodeKit {__version__}"
        )
        parser.add_argument(
            "--verbose", "-v", action="store_true", help="Enable verbose output"
        )
        parser.add_argument(
            "--quiet",
            "-q",
            action="store_true",
            help="Enable minimal output (errors only)",
        )
        parser.add_argument(
            "--config",
            type=Path,
            metavar="PATH",
            help="Path to configuration file (default: ./nodekit.yaml)",
        )
        parser.add_argument(
            "--project-root",
            type=Path,
            metavar="PATH",
            default=Path.cwd(),
            help="Project root directory (default: current directory)",
        )

        subparsers = parser.add_subparsers(
            dest="command", help="Available commands", metavar="COMMAND"
        )

        self._add_install_command(subparsers)
        self._add_check_command(subparsers)

        return parser

    def _add_directory_options(self, parser: argparse.ArgumentParser):
        parser.add_argument(
            "--install-directory",
            type=Path,
            metavar="PATH",
            help="Directory receiving the node/ folder (default: <project-root>/target)",
        )
        parser.add_argument(
            "--cache-directory",
            type=Path,
            metavar="PATH",
            help="Download cache directory (default: ~/.nodekit/cache)",
        )

    def _add_install_command(self, subparsers):
        """Add 'install' subcommand."""
        parser = subparsers.add_parser(
            "install",
            help="Install node into the project",
            description="Download, verify and install a node version",
        )
        parser.add_argument(
            "--node-version",
            metavar="VERSION",
            help="Node version (e.g., v18.17.1) or 'provided'",
        )
        parser.add_argument(
            "--npm-version",
            metavar="VERSION",
            help="'provided' to install the npm bundled with node",
        )
        parser.add_argument(
            "--download-root",
            metavar="URL",
            help="Node download root (full archive URL when version is 'provided')",
        )
        parser.add_argument(
            "--download-hash", metavar="SHA256", help="Expected SHA-256 of the download"
        )
        parser.add_argument("--username", help="User name for the download server")
        parser.add_argument("--password", help="Password for the download server")
        self._add_directory_options(parser)

    def _add_check_command(self, subparsers):
        """Add 'check' subcommand."""
        parser = subparsers.add_parser(
            "check",
            help="Show the installed node version",
            description="Report which node version is installed in the project",
        )
        parser.add_argument(
            "--node-version",
            metavar="VERSION",
            help="Exit with status 1 unless this version is installed",
        )
        self._add_directory_options(parser)

    def parse_args(self, argv: Optional[List[str]] = None):
        """
        Parse command-line arguments.

        Args:
            argv: Arguments to parse (uses sys.argv if None)

        Returns:
            Parsed arguments namespace
        """
        return self.parser.parse_args(argv)

    def run(self, argv: Optional[List[str]] = None) -> int:
        """
        Parse arguments and run the selected command.

        Returns:
            Exit code
        """
        args = self.parse_args(argv)
        self._configure_logging(args)

        if not args.command:
            self.parser.print_help()
            return 1

        return self._dispatch_command(args)

    def _configure_logging(self, args):
        """
        Configure logging based on verbose/quiet flags.

        Args:
            args: Parsed arguments with verbose/quiet flags
        """
        if args.verbose:
            level = logging.DEBUG
            format_str = "%(levelname)s [%(name)s] %(message)s"
        elif args.quiet:
            level = logging.ERROR
            format_str = "%(levelname)s: %(message)s"
        else:
            level = logging.INFO
            format_str = "%(message)s"

        logging.basicConfig(
            level=level,
            format=format_str,
            force=True,  # Reconfigure if already configured
        )

    def _dispatch_command(self, args) -> int:
        """
        Dispatch to appropriate command handler.

        Args:
            args: Parsed arguments with command field

        Returns:
            Exit code from command handler
        """
        command_map = {
            "install": "nodekit.cli.commands.install",
            "check": "nodekit.cli.commands.check",
        }

        module_name = command_map.get(args.command)
        if not module_name:
            logger.error(f"Unknown command: {args.command}")
            return 1

        module = importlib.import_module(module_name)
        return module.run(args)


def main():
    """Main entry point for CLI."""
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
