"""Personal colour analysis result model."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from models.taxonomy import extract_season
from models.wire import ColorAnalysisPayload


@dataclass
class ColorAnalysisResult:
    confidence: float
    personal_color_type: str
    undertone: str = "unknown"
    season: str = "unknown"
    subtype: str = "unknown"
    reasoning: str = ""

    @property
    def confidence_percent(self) -> int:
        return round(self.confidence * 100)

    @property
    def is_low_confidence(self) -> bool:
        return self.confidence < 0.5

    def to_save_payload(self) -> Dict[str, Any]:
        """Body for the colour-result save endpoint."""

        return asdict(self)


def analysis_from_payload(raw: Dict[str, Any]) -> ColorAnalysisResult:
    """Build a result, deriving the season from the type label when missing."""

    payload = ColorAnalysisPayload.model_validate(raw)
    season = payload.season or extract_season(payload.personal_color_type) or "unknown"
    return ColorAnalysisResult(
        confidence=payload.confidence,
        personal_color_type=payload.personal_color_type,
        undertone=payload.undertone or "unknown",
        season=season.lower(),
        subtype=payload.subtype or "unknown",
        reasoning=payload.reasoning,
    )


__all__ = ["ColorAnalysisResult", "analysis_from_payload"]
