"""TraderBot – single-symbol martingale trading decision engine."""

__version__ = "0.1.0"
