"""Argument parsing functionality for offline-sources."""

import argparse


def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="offline-sources",
        description=(
            "offline-sources - Generate a sources list of all remote artifacts "
            "needed for an offline build"
        ),
        add_help=True,
    )

    parser.add_argument("-g", "--graph",
                        dest="GRAPH",
                        help="Path to the build graph export (JSON) written by the build tool",
                        action="store",
                        type=str)
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Path to the sources list to write (JSON)",
                        action="store",
                        type=str)
    parser.add_argument("-d", "--download-directory",
                        dest="DOWNLOAD_DIRECTORY",
                        help="Value prefixed to the \"dest\" field (default: offline-repository)",
                        action="store",
                        type=str)
    parser.add_argument("--include",
                        dest="INCLUDE",
                        help="Only resolve this configuration (can be used multiple times)",
                        action="append",
                        type=str)
    parser.add_argument("--exclude",
                        dest="EXCLUDE",
                        help="Do not resolve this configuration (can be used multiple times)",
                        action="append",
                        type=str)
    parser.add_argument("--workers",
                        dest="WORKERS",
                        help="Number of concurrent resolution workers (default: 128)",
                        action="store",
                        type=int)

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
