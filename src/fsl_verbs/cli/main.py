"""
fsl-verbs CLI

Short verbs for FSL command-line programs:

  fslv tmean run1.nii.gz run2.nii.gz      -> run1_tmean.nii.gz, run2_tmean.nii.gz
  fslv lthresh 10 zstat1.nii.gz           -> zstat1_lthresh10.nii.gz
  fslv reg 6 T1.nii.gz $(fslv tmean bold.nii.gz)

stdout carries only the produced paths (or query values), one per line,
so invocations chain through command substitution. Diagnostics go to
stderr.

Exit status: 0 on success, on usage problems and for unknown
operations; 1 for unreadable inputs, configuration and value errors;
an FSL program's own status when it fails; 127 when it is not installed.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .. import __version__
from ..config import ConfigurationError, load_config
from ..core.dispatch import check_arguments, dispatch
from ..core.invocation import InputFileError, UsageError, resolve_invocation
from ..core.operations import format_operation_table, lookup_operation
from ..io.fsl_io import FSLCommandError, FSLNotFoundError

logger = logging.getLogger("fsl_verbs")

NOT_IMPLEMENTED = "Operation not implemented yet."


def build_parser():
    parser = argparse.ArgumentParser(
        prog="fslv",
        description="Short verbs for FSL command-line tools",
        epilog=format_operation_table(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("operation", nargs="?", help="Operation name or alias")
    parser.add_argument("inputs", nargs="*",
                        help="Optional leading number, then input images")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Log steps to stderr (-vv also logs commands)")
    parser.add_argument("--config", metavar="FILE",
                        help="YAML configuration file")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__}")
    return parser


def _setup_logging(verbosity: int):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(name)s: %(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _print_usage(e: UsageError):
    if e.reason:
        print(f"{e.spec.name}: {e.reason}")
    print(e.spec.usage_line())


def run(operation: str, inputs: List[str], config_path: Optional[str] = None) -> int:
    """
    Resolve, validate and execute one operation.

    Returns
    -------
    int
        Process exit status
    """
    spec = lookup_operation(operation)
    if spec is None:
        print(NOT_IMPLEMENTED)
        return 0

    try:
        invocation = resolve_invocation(spec, inputs)
        check_arguments(invocation)
    except InputFileError as e:
        print(str(e), file=sys.stderr)
        return 1
    except UsageError as e:
        _print_usage(e)
        return 0

    try:
        config = load_config(config_path)
    except ConfigurationError as e:
        logger.error("%s", e)
        return 1
    config.apply_environment()

    try:
        for line in dispatch(invocation, config):
            print(line, flush=True)
    except FSLCommandError as e:
        logger.error("%s", e)
        return e.returncode if e.returncode > 0 else 1
    except FSLNotFoundError as e:
        logger.error("%s", e)
        return 127
    except ValueError as e:
        logger.error("%s", e)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_intermixed_args(argv)

    if args.operation is None or not args.inputs:
        parser.print_help()
        return 0

    _setup_logging(args.verbose)
    return run(args.operation, args.inputs, args.config)


if __name__ == "__main__":
    sys.exit(main())
