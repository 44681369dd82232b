#!/usr/bin/env python3
"""
asmi — Assembly Interpreter CLI

Usage:
    python asmi.py [input_file] [-v|-vv] [-q] [--log-file PATH] [--trace]

With an input file the program runs in batch mode: the first error aborts
the run with exit status 1. Without one it starts an interactive session
on stdin: errors are reported and the session continues until EXIT or
end of input.

Examples:
    python asmi.py program.asm
    python asmi.py program.asm --trace -vv
    python asmi.py                       # interactive, "> " prompt
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterator, Optional, TextIO

from rich.console import Console
from rich.logging import RichHandler

from asm_interpreter import __version__, Policy, run, run_file
from asm_interpreter import config

LOG_NAME = "asm_interpreter"


def setup_logging(
    console_level: int = logging.WARNING,
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Configure and return the package logger.

    Console output goes through rich on stderr so it never mixes with
    PRINT output on stdout. The optional log file captures everything
    (DEBUG+).
    """
    logger = logging.getLogger(LOG_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # ── Console handler: WARNING+ unless -v ──
    ch = RichHandler(
        level=console_level,
        console=Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    ch.setLevel(console_level)
    logger.addHandler(ch)

    # ── File handler: captures everything ──
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        logger.addHandler(fh)
        logger.info("Log file: %s", log_file)

    return logger


def console_level(verbose: int, quiet: bool) -> int:
    """Map -v/-q flags to a console log level."""
    if quiet:
        return logging.ERROR
    if verbose == 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def prompt_lines(stream: TextIO, prompt: str = config.PROMPT) -> Iterator[str]:
    """Yield lines from `stream`, writing the prompt before each read."""
    while True:
        sys.stdout.write(prompt)
        sys.stdout.flush()
        line = stream.readline()
        if not line:
            return
        yield line


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asmi",
        description="Line-oriented interpreter for a small 32-bit assembly language",
        epilog="Without an input file the interpreter runs interactively on stdin.",
    )
    parser.add_argument("input_file", nargs="?", default=None,
                        help="Optional input file to execute (batch mode)")
    parser.add_argument("--trace", action="store_true",
                        help="Log machine state after every instruction (shown with -vv)")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase log verbosity (-v, -vv)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only log errors")
    parser.add_argument("--log-file", type=Path, default=None,
                        help="Write a full DEBUG log to this file")
    parser.add_argument("--version", action="version",
                        version=f"asmi {__version__}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    log = setup_logging(console_level(args.verbose, args.quiet), args.log_file)

    try:
        if args.input_file:
            try:
                result = run_file(args.input_file, trace=args.trace)
            except (OSError, UnicodeDecodeError) as e:
                print(f"Error reading {args.input_file}: {e}", file=sys.stderr)
                return 1
        else:
            print(config.BANNER)
            result = run(prompt_lines(sys.stdin), Policy.INTERACTIVE, trace=args.trace)
    except KeyboardInterrupt:
        print("\nCtrl-C pressed. Exiting...")
        return 0

    if not result.ok:
        print(f"Error: {result.detail}", file=sys.stderr)
        if result.source:
            print(f"    {result.source}", file=sys.stderr)
        return 1

    log.debug("halted after %d lines", result.lines_read)
    return 0


if __name__ == "__main__":
    sys.exit(main())
