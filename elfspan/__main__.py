"""Allow ``python -m elfspan``."""

from elfspan.cli import main

main()
