"""Fleet sync engine, per-resource sync steps and their helpers."""

from fleetsync.sync.engine import SyncEngine, SyncReport
from fleetsync.sync.orchestrator import RepoOrchestrator

__all__ = ["RepoOrchestrator", "SyncEngine", "SyncReport"]
