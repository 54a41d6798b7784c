"""
TraderBot – Domain Value Object: AnalysisSignal
=================================================
Resultado puntual del analizador externo.

- frozen=True → inmutable, sin identidad persistida.
- confidence se valida en [0, 1] al construir.
- El motor de decisión la trata como entrada opaca: no sabe cómo se generó.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from traderbot.domain.exceptions.domain_errors import ValidationError


class SignalKind(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True, slots=True)
class AnalysisSignal:
    kind: SignalKind
    confidence: Decimal
    reason: str = ""

    def __post_init__(self) -> None:
        confidence = Decimal(str(self.confidence))
        if not Decimal("0") <= confidence <= Decimal("1"):
            raise ValidationError(
                f"Confianza fuera de rango [0, 1]: {confidence}",
                field="confidence",
                value=self.confidence,
            )
        # frozen → asignación vía object.__setattr__
        object.__setattr__(self, "confidence", confidence)
        object.__setattr__(self, "kind", SignalKind(self.kind))

    @classmethod
    def hold(cls, reason: str = "") -> "AnalysisSignal":
        return cls(kind=SignalKind.HOLD, confidence=Decimal("0"), reason=reason)

    def to_dict(self) -> dict:
        return {
            "signal": self.kind.value,
            "confidence": float(self.confidence),
            "reason": self.reason,
        }
