"""Main entry point for the VeloStore CLI.

Usage:
    python -m velostore --help
    velostore --help  # If installed via pip
"""

from velostore.cli import main

if __name__ == "__main__":
    main()
