"""
TraderBot – Domain Value Object: TimeFrame
============================================
Marcos temporales soportados y su duración en segundos.
"""

from __future__ import annotations

from enum import Enum

from traderbot.domain.exceptions.domain_errors import ValidationError


class TimeFrame(str, Enum):
    ONE_MINUTE = "1m"
    FIVE_MINUTES = "5m"
    FIFTEEN_MINUTES = "15m"
    THIRTY_MINUTES = "30m"
    ONE_HOUR = "1h"
    FOUR_HOURS = "4h"
    ONE_DAY = "1d"

    @property
    def seconds(self) -> int:
        return TIMEFRAME_SECONDS[self]

    @classmethod
    def parse(cls, value: "str | TimeFrame") -> "TimeFrame":
        """Acepta "5m", "5M" o un TimeFrame ya construido."""
        if isinstance(value, TimeFrame):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"Timeframe no soportado: {value!r}", field="timeframe", value=value,
            ) from None


TIMEFRAME_SECONDS: dict[TimeFrame, int] = {
    TimeFrame.ONE_MINUTE: 60,
    TimeFrame.FIVE_MINUTES: 300,
    TimeFrame.FIFTEEN_MINUTES: 900,
    TimeFrame.THIRTY_MINUTES: 1800,
    TimeFrame.ONE_HOUR: 3600,
    TimeFrame.FOUR_HOURS: 14_400,
    TimeFrame.ONE_DAY: 86_400,
}
