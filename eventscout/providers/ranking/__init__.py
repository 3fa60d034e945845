"""Ranking provider implementations (IRankingProvider)."""

from eventscout.providers.ranking.llm_ranking_provider import LLMRankingProvider

__all__ = ["LLMRankingProvider"]
