"""Concrete provider adapters, grouped by interface.

Sub-packages: article, cache, discovery, extraction, llm, ranking, search.
Import concrete classes from the sub-packages; this package re-exports
nothing so that importing one adapter never pulls in every SDK.
"""
