"""
Entry point for running NodeKit CLI as a module.

Usage: python -m nodekit.cli [command] [options]
"""

from .parser import main

if __name__ == "__main__":
    main()
