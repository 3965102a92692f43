"""Allow ``python -m gauth``."""

from gauth.cli import main

if __name__ == "__main__":
    main()
