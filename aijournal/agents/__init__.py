"""AI agents for the trade journal.

This module provides model-backed alternatives to the local engines:
- ImportAgent: Column mapping and normalization of raw spreadsheet rows
- AnalysisAgent: Statistics and chart series over the trade set
"""

from aijournal.agents.base import (
    configure_api_key,
    create_agent,
    get_model,
    run_agent_sync,
)
from aijournal.agents.importer import ImportAgent, parse_import_response
from aijournal.agents.analyst import AnalysisAgent, parse_analysis_response, trades_to_csv

__all__ = [
    # Base utilities
    "create_agent",
    "run_agent_sync",
    "get_model",
    "configure_api_key",
    # Agents
    "ImportAgent",
    "AnalysisAgent",
    # Response parsing
    "parse_import_response",
    "parse_analysis_response",
    "trades_to_csv",
]
