"""Configuration constants and .env loading.

WHY: The toolchain depends on things that differ between machines: where
wat2wasm lives, where intermediate artifacts may be written, whether a
prebuilt relib binary is available. Keeping them in one module makes them
easy to find and override without touching pipeline code.

HOW: python-dotenv loads the .env file on import. Every setting is a
module-level constant read from the environment with a sensible default.
parse_inputs() turns the "665,1" style input string into a pair of ints.

RULES:
- All defaults can be overridden via environment variables
- RERUN_ARTIFACT_DIR unset means the system temp directory
- RERUN_STDLIB_WASM unset means the bundled relib.wat is assembled on demand
- parse_inputs() raises ConfigurationError for anything but two integers
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

from rerun.core.errors import ConfigurationError

# Load .env from the project root (where the tool is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Toolchain
# ---------------------------------------------------------------------------

RERUN_ASSEMBLER = os.getenv("RERUN_ASSEMBLER", "wat2wasm")
RERUN_ASSEMBLER_TIMEOUT_S = float(os.getenv("RERUN_ASSEMBLER_TIMEOUT_S", "30"))
RERUN_ARTIFACT_DIR = os.getenv("RERUN_ARTIFACT_DIR", "")
RERUN_STDLIB_WASM = os.getenv("RERUN_STDLIB_WASM", "")

RELIB_SOURCE = Path(__file__).resolve().parent / "stdlib" / "relib.wat"
"""Bundled WAT source of the numeric library that provides ``stdlib.pow``."""

# ---------------------------------------------------------------------------
# Execution and logging
# ---------------------------------------------------------------------------

RERUN_INPUTS = os.getenv("RERUN_INPUTS", "665,1")
RERUN_LOG_LEVEL = os.getenv("RERUN_LOG_LEVEL", "WARNING").upper()


def artifact_dir() -> Path:
    """Directory where .wat/.wasm artifacts are staged."""
    return Path(RERUN_ARTIFACT_DIR or tempfile.gettempdir())


def stdlib_wasm_path() -> Optional[Path]:
    """Path to a prebuilt relib binary, or None to assemble the bundled source."""
    return Path(RERUN_STDLIB_WASM) if RERUN_STDLIB_WASM else None


def parse_inputs(raw: str) -> Tuple[int, int]:
    """Parse the two program inputs from a comma-separated string.

    WHY: Every rerun program is a function of exactly two i32 parameters.
    The inputs used by the CLI come from configuration, so a typo should
    produce a clear message instead of a crash deep inside the runtime.

    RULES:
    - Exactly two comma-separated values, surrounding whitespace ignored
    - Each value must parse as a (possibly negative) decimal integer
    - Raises ConfigurationError (a ValueError) naming the offending string otherwise
    """
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 2:
        raise ConfigurationError(
            "Expected two comma-separated program inputs, got '{}'".format(raw)
        )
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        raise ConfigurationError(
            "Program inputs must be integers, got '{}'".format(raw)
        )
