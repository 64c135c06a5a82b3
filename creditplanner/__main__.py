"""
Package entry point.

Allows running the application via:

    python -m creditplanner

This simply forwards execution to creditplanner.cli.main().
"""

from creditplanner.cli import main

if __name__ == "__main__":
    main()
