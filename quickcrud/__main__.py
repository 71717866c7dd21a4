# File: quickcrud/__main__.py
"""
QuickCRUD - Module entry point.

Allows running the generator directly via::

    python -m quickcrud Product --fields "title:string,price:decimal"

This module simply delegates to the CLI entry point defined in ``quickcrud.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from quickcrud.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
