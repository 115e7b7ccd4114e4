"""
Entry point for running NodeKit CLI as a module.

Usage: python -m nodekit [command] [options]
"""

from nodekit.cli.parser import main

if __name__ == "__main__":
    main()
