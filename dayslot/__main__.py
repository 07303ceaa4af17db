"""
Convenience entry point for running dayslot as a module.

Usage: python -m dayslot [command] [options]
"""

from dayslot.cli.app import app

if __name__ == "__main__":
    app()
