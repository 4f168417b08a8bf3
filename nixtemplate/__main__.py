"""Main entry point when executing nixtemplate as a package.

This allows running the package using python -m nixtemplate.
"""

from nixtemplate.main import cli_entry_point

if __name__ == "__main__":
    cli_entry_point()
