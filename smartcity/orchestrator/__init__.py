"""
City snapshot orchestration
Settle-all aggregation across providers and last-search-wins sessions
"""

from smartcity.orchestrator.aggregator import CityAggregator, settle_all
from smartcity.orchestrator.session import SearchSession

__all__ = ["CityAggregator", "SearchSession", "settle_all"]
