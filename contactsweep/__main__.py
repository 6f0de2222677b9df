"""Main entry point when executing contactsweep as a package.

This allows running the package using python -m contactsweep.
"""

from contactsweep.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
