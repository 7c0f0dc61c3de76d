"""Package entry point for ``python -m vertical_csv``.

Delegates to the CLI's main() function.
"""

from vertical_csv.cli import main

if __name__ == "__main__":
    main()
