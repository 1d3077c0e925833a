"""Package entry point for ``python -m rerun``.

WHY: Users run programs as ``python -m rerun p1 p2 add`` without
installing the console script.

HOW: Delegates to the CLI's main() and exits with its status code.
"""

import sys

if __name__ == "__main__":
    from rerun.cli import main
    sys.exit(main())
