"""Allow ``python -m eventscout.cli`` execution (runs the search command)."""

from eventscout.cli.search import main

main()
