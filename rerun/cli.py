"""Command-line interface for running rerun programs.

WHY: The quickest way to try a rerun program is to type it as arguments:
``rerun p1 p2 add`` compiles, assembles, runs it for the configured inputs
and prints the result. The CLI wires the whole pipeline together behind
that one command.

HOW: Leading ``--name`` / ``--no-name`` arguments are peeled off as boolean
options; everything after them is the program. The async pipeline runs
via asyncio.run(). Results go to stdout, errors to stderr, both optionally
highlighted with ANSI escapes.

RULES:
- Only ``--name`` (true) and ``--no-name`` (false) are recognized; ``--``
  ends option parsing, as does the first argument not starting with ``--``
- Known options: cleanup (default true), wat (default false),
  color (default: stdout is a TTY); unknown options are logged and ignored
- Success: prints "rerun <tokens> --> <result>" and returns 0
- Failure: prints only the error message (no traceback) and returns 1
- Inputs come from RERUN_INPUTS (default 665,1)
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Dict, List, Optional, Tuple

from rerun import config
from rerun.core.compiler import to_wat
from rerun.core.errors import RerunError
from rerun.toolchain.runtime import run_program

logger = logging.getLogger(__name__)

KNOWN_OPTIONS = frozenset({"cleanup", "wat", "color"})


def parse_options(args: List[str]) -> Tuple[Dict[str, bool], List[str]]:
    """Split leading boolean options from the rerun program.

    Args:
        args: Raw command-line arguments (without the program name).

    Returns:
        Tuple of (options, tokens). ``--x`` sets ``options["x"] = True``,
        ``--no-x`` sets it to False.
    """
    options: Dict[str, bool] = {}
    index = 0

    while index < len(args) and args[index].startswith("--"):
        key = args[index][2:]
        index += 1
        if key == "":
            break
        value = True
        if key.startswith("no-"):
            key = key[3:]
            value = False
        options[key] = value

    return options, args[index:]


def _bold(text: str) -> str:
    return "\x1b[1m{}\x1b[22m".format(text)


def _red(text: str) -> str:
    return "\x1b[31;1m{}\x1b[39;22m".format(text)


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.RERUN_LOG_LEVEL, logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv[1:] (normal CLI invocation)
    - Explicit argv is for testing
    - Never raises for rerun or configuration errors; returns 1 instead
    """
    _configure_logging()
    args = list(sys.argv[1:] if argv is None else argv)
    options, tokens = parse_options(args)

    for key in sorted(set(options) - KNOWN_OPTIONS):
        logger.warning("Ignoring unknown option --%s", key)

    color = options.get("color", sys.stdout.isatty())
    cleanup = options.get("cleanup", True)
    program = "rerun {}".format(" ".join(tokens))

    try:
        inputs = config.parse_inputs(config.RERUN_INPUTS)
        if options.get("wat", False):
            print(to_wat(tokens), end="")
        result = asyncio.run(run_program(tokens, inputs, cleanup=cleanup))
    except (RerunError, ValueError) as exc:
        message = str(exc)
        print(_red(message) if color else message, file=sys.stderr, flush=True)
        return 1

    line = "{} --> {}".format(program, result)
    print(_bold(line) if color else line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
