"""
Entry point for running dohbench as a module.

Usage: python -m dohbench [OPTIONS] COMMAND [ARGS]...
"""

from .cli import main

if __name__ == "__main__":
    main()
