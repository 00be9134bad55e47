"""Wire schemas for backend payloads.

Every response the backend sends passes through one of these models before
the rest of the code sees it. Field names vary between deployments, so each
logical field lists the spellings it accepts in ``AliasChoices``; the first
spelling present in the payload wins.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

IMAGE_URL_ALIASES: Tuple[str, ...] = ("imageUrl", "ImageURL", "imageURL", "image_url")
ITEM_ID_ALIASES: Tuple[str, ...] = ("ID", "id")

# Probed in order when a try-on response is JSON.
TRY_ON_IMAGE_FIELDS: Tuple[str, ...] = (
    "try_on_full_outfit_on_sequential_image",
    "image",
    "result_image",
    "result",
    "output_image",
    "generated_image",
)

_DIGITS = re.compile(r"\d+")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class CatalogItemPayload(BaseModel):
    """A catalog entry as returned by the outfit endpoint."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int = Field(validation_alias=AliasChoices(*ITEM_ID_ALIASES))
    description: str = Field("", validation_alias=AliasChoices("Description", "description"))
    price: str = Field("", validation_alias=AliasChoices("Price", "price"))
    image_url: str = Field("", validation_alias=AliasChoices(*IMAGE_URL_ALIASES))
    color_hex: str = Field("", validation_alias=AliasChoices("ColorHEX", "ColorHex", "color_hex"))
    color_name: str = Field("", validation_alias=AliasChoices("ColorName", "color_name"))
    product_url: str = Field("", validation_alias=AliasChoices("ProductURL", "ProductUrl", "product_url"))
    detail_description: str = Field(
        "", validation_alias=AliasChoices("DetailDescription", "detail_description")
    )
    type: str = Field("", validation_alias=AliasChoices("Type", "type"))
    personal_color_type: str = Field(
        "", validation_alias=AliasChoices("PersonalColorType", "personal_color_type")
    )
    popularity: float = Field(0.0, validation_alias=AliasChoices("popularity", "Popularity"))

    @field_validator(
        "description",
        "price",
        "image_url",
        "color_hex",
        "color_name",
        "product_url",
        "detail_description",
        "type",
        "personal_color_type",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value)

    @field_validator("popularity", mode="before")
    @classmethod
    def _coerce_popularity(cls, value: Any) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return 0.0


class LikedItemPayload(CatalogItemPayload):
    """A liked-item record from the authenticated list endpoint.

    The outfit id is taken from ``ID``, then the digits inside ``item_id``,
    then ``id``. In records shaped ``{id, item_id, created_at}`` the bare
    ``id`` is the like row, not the outfit.
    """

    item_id: Optional[str] = None
    category: Optional[str] = None
    liked_at: str = Field("", validation_alias=AliasChoices("liked_at", "likedAt", "created_at"))

    @model_validator(mode="before")
    @classmethod
    def _fill_id_from_item_id(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        if data.get("ID") is not None:
            return data
        match = _DIGITS.search(_as_text(data.get("item_id")))
        if match:
            return {**data, "id": int(match.group())}
        return data

    @field_validator("item_id", mode="before")
    @classmethod
    def _coerce_item_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @field_validator("liked_at", mode="before")
    @classmethod
    def _coerce_liked_at(cls, value: Any) -> str:
        return _as_text(value)


class ColorAnalysisPayload(BaseModel):
    """Result of the hybrid colour-analysis ensemble."""

    model_config = ConfigDict(extra="ignore")

    confidence: float = 0.0
    personal_color_type: str = ""
    undertone: str = "unknown"
    season: Optional[str] = None
    subtype: str = "unknown"
    reasoning: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def _coerce_confidence(cls, value: Any) -> float:
        try:
            confidence = float(value)
        except (TypeError, ValueError):
            return 0.0
        # Some deployments report a percentage.
        return confidence / 100 if confidence > 1 else confidence


class UserProfilePayload(BaseModel):
    """User profile as stored by the backend."""

    model_config = ConfigDict(extra="ignore")

    height: Optional[float | str] = None
    weight: Optional[float | str] = None
    chest_size: Optional[float | str] = None
    waist_size: Optional[float | str] = None
    hip_size: Optional[float | str] = None
    shoe_size: Optional[float | str] = None
    clothing_size: Optional[str | float] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    preferred_style: Optional[str] = None
    body_image: Optional[str] = None
    face_image: Optional[str] = None


def extract_try_on_image(payload: Dict[str, Any]) -> Optional[str]:
    """Return the first non-empty image field of a try-on JSON response."""

    for field_name in TRY_ON_IMAGE_FIELDS:
        value = payload.get(field_name)
        if isinstance(value, str) and value:
            return value
    return None


__all__ = [
    "CatalogItemPayload",
    "ColorAnalysisPayload",
    "IMAGE_URL_ALIASES",
    "LikedItemPayload",
    "TRY_ON_IMAGE_FIELDS",
    "UserProfilePayload",
    "extract_try_on_image",
]
