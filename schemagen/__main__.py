# File: schemagen/__main__.py
"""
schemagen — Module entry point.

Allows running the generator directly via::

    python -m schemagen --database-url sqlite:///shop.db

This module simply delegates to the CLI entry point defined in ``schemagen.cli``.
"""

from __future__ import annotations

import sys


def main() -> None:
    """Delegate to the CLI main function."""
    from schemagen.cli import main as cli_main
    sys.exit(cli_main())


if __name__ == "__main__":
    main()
