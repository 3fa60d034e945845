"""Pipeline stages and the orchestrator that runs them for one event search."""

from eventscout.pipeline.extraction import ExtractionEngine
from eventscout.pipeline.fallback import FallbackDataset
from eventscout.pipeline.orchestrator import SearchOrchestrator
from eventscout.pipeline.prioritizer import (
    HeuristicRankingStrategy,
    ModelRankingStrategy,
    PrioritizationEngine,
)
from eventscout.pipeline.tier_executor import DiscoveryTier, TierExecutor

__all__ = [
    "DiscoveryTier",
    "ExtractionEngine",
    "FallbackDataset",
    "HeuristicRankingStrategy",
    "ModelRankingStrategy",
    "PrioritizationEngine",
    "SearchOrchestrator",
    "TierExecutor",
]
