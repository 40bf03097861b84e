"""
Entry point for running crosskit CLI as a module.

Usage: python -m crosskit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
