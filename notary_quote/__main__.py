"""Entry point for running notary_quote as a module.

Usage:
    python -m notary_quote <command> [options]
"""
from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
