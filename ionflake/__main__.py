"""Allow running as `python -m ionflake`."""

from .cli import main

main()
