"""
agent-runtime: tool-using orchestration engine for deployed agents.
"""

__version__ = "0.1.0"
