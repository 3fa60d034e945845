# =============================================================================
# eventscout/cli/__init__.py -- CLI Module Overview
# =============================================================================
#
# Command-line access to the search pipeline without the web server:
#
#   SEARCH (search.py)
#      Builds a SearchRequest from arguments, runs the orchestrator once
#      and prints a text summary or the full JSON envelope.
#
# Architecture Notes:
#   - argparse only, like the rest of the tooling.
#   - Heavy imports (providers, httpx) are deferred inside functions so
#     `--help` and argument errors return immediately.
#   - Logs go to stderr; stdout carries only the results.
# =============================================================================

"""CLI tools for eventScout.

- ``python -m eventscout.cli.search "query" --country DE`` runs one search.
- ``python -m eventscout.cli`` is the same command.
"""
