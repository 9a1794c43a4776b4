"""
Entry point for running pulsenet as a module.

Usage: python -m pulsenet [OPTIONS] COMMAND [ARGS]...
"""

from .cli import main

if __name__ == "__main__":
    main()
