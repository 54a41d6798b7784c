"""Market analyzers."""
from traderbot.infrastructure.analysis.dow_theory_analyzer import DowTheoryAnalyzer

__all__ = ["DowTheoryAnalyzer"]
