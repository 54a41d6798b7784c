"""Application DTOs."""
from traderbot.application.dto.position_dto import BalanceSummaryDTO, PositionResponseDTO

__all__ = ["BalanceSummaryDTO", "PositionResponseDTO"]
