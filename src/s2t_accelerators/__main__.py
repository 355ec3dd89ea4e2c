"""Allow ``python -m s2t_accelerators [stdio|http]``."""

from .cli import main

if __name__ == "__main__":
    main()
