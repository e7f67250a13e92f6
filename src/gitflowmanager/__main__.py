"""
Entry point for running gitflowmanager as a module.

This allows execution via `python -m gitflowmanager`.

Example:
    $ python -m gitflowmanager list
"""

from . import main

if __name__ == "__main__":
    main()
