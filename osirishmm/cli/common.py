"""Shared argparse argument factories for osirishmm CLI tools.

Each function adds a group of related arguments to an ArgumentParser.
Default values can be overridden per-script where needed.
"""

import argparse


def add_output_args(parser: argparse.ArgumentParser,
                    required: bool = True,
                    help_text: str = "Output pore model file") -> None:
    """Add -o/--output argument."""
    parser.add_argument(
        '-o', '--output', required=required,
        help=help_text
    )


def add_bounds_args(parser: argparse.ArgumentParser, required: bool = False) -> None:
    """Add -b/--bounds LOWER UPPER (half-open reference window to train on)."""
    parser.add_argument(
        '-b', '--bounds', type=int, nargs=2, metavar=('LOWER', 'UPPER'),
        required=required, default=None,
        help="Indices where the training sequence starts and ends in the reference"
    )


def add_em_args(parser: argparse.ArgumentParser,
                tolerance: float = 1e-4,
                max_iter: int = 1000) -> None:
    """Add mixture-fit arguments (--em-tolerance, --em-max-iter)."""
    parser.add_argument(
        '--em-tolerance', type=float, default=tolerance,
        help=f"Log-likelihood improvement below which EM stops (default: {tolerance})"
    )
    parser.add_argument(
        '--em-max-iter', type=int, default=max_iter,
        help=f"Maximum EM iterations per position (default: {max_iter})"
    )


def add_quality_args(parser: argparse.ArgumentParser, default: float = 1.0) -> None:
    """Add --max-quality argument."""
    parser.add_argument(
        '--max-quality', type=float, default=default,
        help=f"Discard reads whose |quality score| exceeds this (default: {default})"
    )


def add_verbose_args(parser: argparse.ArgumentParser) -> None:
    """Add --verbose flag."""
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help="Verbose output"
    )


def add_version_args(parser: argparse.ArgumentParser) -> None:
    """Add --version flag."""
    from osirishmm import __version__
    parser.add_argument(
        '--version', action='version',
        version=f'%(prog)s {__version__}'
    )
