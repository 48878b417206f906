from etf_discovery.core.discovery.cache import DiscoveryResultCache
from etf_discovery.core.discovery.orchestrator import DiscoveryOrchestrator, DiscoveryStage

__all__ = ["DiscoveryOrchestrator", "DiscoveryResultCache", "DiscoveryStage"]
