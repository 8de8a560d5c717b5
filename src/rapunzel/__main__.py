"""Allow ``python -m rapunzel``."""

from rapunzel.cli import main

if __name__ == "__main__":
    main()
