"""Colour analysis, result persistence and profile endpoints."""

from __future__ import annotations

import base64
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError

from models.color_analysis import ColorAnalysisResult, analysis_from_payload
from models.wire import UserProfilePayload
from tools.api_client import StylistApiClient, is_success, response_detail
from tools.errors import MalformedResponseError, NoFaceDetectedError
from tools.observability import instrument_call

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyze/color/ensemble/hybrid"
SAVE_RESULT_PATH = "/api/user/color/save"
RESULTS_PATH = "/api/user/color/results"
PROFILE_PATH = "/api/user/profile"
UPLOAD_PATH = "/api/test/upload"
NO_FACE_MARKER = "no face detected"
DEFAULT_UPLOAD_MIME = "image/jpeg"


def is_no_face_detected(detail: Optional[str]) -> bool:
    return NO_FACE_MARKER in (detail or "").lower()


def upload_mime_type(path: Path) -> str:
    """``image/<suffix>``, falling back to JPEG when there is no suffix."""

    suffix = path.suffix.lower().lstrip(".")
    if not suffix:
        return DEFAULT_UPLOAD_MIME
    return "image/jpeg" if suffix == "jpg" else f"image/{suffix}"


class ColorAnalysisClient:
    """Client for the personal colour analysis and profile endpoints."""

    def __init__(self, api: StylistApiClient) -> None:
        self.api = api

    @instrument_call("analyze_color")
    def analyze(self, photo: str | Path) -> ColorAnalysisResult:
        """Run the hybrid ensemble on a face photo.

        Raises:
            NoFaceDetectedError: The service found no face; prompt a retake.
            StylistApiError: Any other failure.
        """

        encoded = base64.b64encode(Path(photo).read_bytes()).decode("ascii")
        response = self.api.request(
            "POST",
            ANALYZE_PATH,
            params={"judge_model": self.api.config.judge_model},
            json={"image": encoded},
            timeout=self.api.config.try_on_timeout_seconds,
        )
        if not is_success(response.status_code):
            detail = response_detail(response)
            if is_no_face_detected(detail):
                raise NoFaceDetectedError(
                    "No face detected in the image. Retake the photo with your face clearly visible.",
                    status_code=response.status_code,
                    detail=detail,
                )
        self.api.check(response, "analyze colour")
        return self._parse_analysis(self.api.json(response, "analyze colour"))

    @instrument_call("save_color_result")
    def save_result(self, result: ColorAnalysisResult) -> Dict[str, Any]:
        response = self.api.request("POST", SAVE_RESULT_PATH, auth=True, json=result.to_save_payload())
        self.api.check(response, "save colour analysis")
        payload = self.api.json(response, "save colour analysis")
        return payload if isinstance(payload, dict) else {}

    @instrument_call("latest_color_result")
    def latest_result(self) -> Optional[ColorAnalysisResult]:
        """Most recent saved result, or ``None`` when nothing has been saved."""

        response = self.api.request("GET", RESULTS_PATH, auth=True, params={"limit": 1})
        if response.status_code == 404:
            logger.info("No saved colour analysis yet")
            return None
        self.api.check(response, "fetch colour results")
        payload = self.api.json(response, "fetch colour results")
        if not isinstance(payload, list):
            raise MalformedResponseError("Colour results response is not an array")
        if not payload:
            return None
        return self._parse_analysis(payload[0])

    @instrument_call("get_profile")
    def get_profile(self) -> UserProfilePayload:
        response = self.api.check(self.api.request("GET", PROFILE_PATH, auth=True), "fetch profile")
        return self._parse_profile(self.api.json(response, "fetch profile"))

    @instrument_call("update_profile_face_image")
    def update_face_image(self, photo: str | Path, profile: Optional[UserProfilePayload] = None) -> UserProfilePayload:
        """Upload a new face image while keeping the rest of the profile as is."""

        path = Path(photo)
        data = path.read_bytes()
        if not data:
            raise ValueError(f"Photo {path.name} is empty")
        image_format = "png" if path.suffix.lower() == ".png" else "jpeg"
        face_image = f"data:image/{image_format};base64,{base64.b64encode(data).decode('ascii')}"

        current = profile or UserProfilePayload()
        body = {**current.model_dump(), "face_image": face_image}
        response = self.api.check(
            self.api.request("POST", PROFILE_PATH, auth=True, json=body),
            "update profile",
        )
        return self._parse_profile(self.api.json(response, "update profile"))

    @instrument_call("upload_profile_photo")
    def upload_photo(self, photo: str | Path) -> Dict[str, Any]:
        """Upload a captured profile photo as the multipart ``file`` field."""

        path = Path(photo)
        data = path.read_bytes()
        if not data:
            raise ValueError(f"Photo {path.name} is empty")
        response = self.api.request(
            "POST",
            UPLOAD_PATH,
            files={"file": (path.name, data, upload_mime_type(path))},
            timeout=self.api.config.try_on_timeout_seconds,
        )
        self.api.check(response, "upload photo")
        payload = self.api.json(response, "upload photo")
        return payload if isinstance(payload, dict) else {"result": payload}

    @staticmethod
    def _parse_analysis(payload: Any) -> ColorAnalysisResult:
        if not isinstance(payload, dict):
            raise MalformedResponseError("Colour analysis response is not an object")
        try:
            return analysis_from_payload(payload)
        except ValidationError as exc:
            raise MalformedResponseError(f"Colour analysis response is invalid: {exc}") from exc

    @staticmethod
    def _parse_profile(payload: Any) -> UserProfilePayload:
        if not isinstance(payload, dict):
            raise MalformedResponseError("Profile response is not an object")
        try:
            return UserProfilePayload.model_validate(payload)
        except ValidationError as exc:
            raise MalformedResponseError(f"Profile response is invalid: {exc}") from exc


def result_as_dict(result: ColorAnalysisResult) -> Dict[str, Any]:
    return {**asdict(result), "confidence_percent": result.confidence_percent}


__all__ = ["ColorAnalysisClient", "is_no_face_detected", "result_as_dict", "upload_mime_type"]
