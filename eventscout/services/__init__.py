"""Service layer: request construction, query shaping and result caching.

These helpers sit around the pipeline rather than inside it.  The HTTP
routes and the CLI build a :class:`~eventscout.models.search.SearchRequest`
with :mod:`request_builder` and run it through :mod:`search_cache`; the
discovery tiers use :mod:`query_builder` to shape provider queries.
"""
