"""Colour analysis and profile client tests."""

from __future__ import annotations

import base64
from pathlib import Path

import pytest

from models.color_analysis import ColorAnalysisResult
from models.wire import UserProfilePayload
from stylist_app.config import StylistConfig
from tools.color_analysis import ColorAnalysisClient, result_as_dict, upload_mime_type
from tools.errors import NoFaceDetectedError, NotAuthenticatedError, StylistApiError
from conftest import FakeResponse


def _face(tmp_path: Path, name: str = "face.jpg") -> Path:
    path = tmp_path / name
    path.write_bytes(b"face-bytes")
    return path


def test_analyze_sends_raw_base64_and_judge_model(tmp_path: Path, config: StylistConfig, make_api) -> None:
    api, session = make_api(
        config,
        [FakeResponse(200, {"confidence": 0.82, "personal_color_type": "Deep Autumn", "undertone": "warm"})],
    )

    result = ColorAnalysisClient(api).analyze(_face(tmp_path))

    call = session.calls[0]
    assert call["url"] == "https://api.test/api/analyze/color/ensemble/hybrid"
    assert call["params"] == {"judge_model": "openai"}
    assert call["json"] == {"image": base64.b64encode(b"face-bytes").decode()}
    assert result.season == "autumn"
    assert result_as_dict(result)["confidence_percent"] == 82


def test_analyze_no_face_detected(tmp_path: Path, config: StylistConfig, make_api) -> None:
    api, _ = make_api(config, [FakeResponse(400, {"detail": "No face detected in image"})])
    with pytest.raises(NoFaceDetectedError):
        ColorAnalysisClient(api).analyze(_face(tmp_path))


def test_analyze_other_error(tmp_path: Path, config: StylistConfig, make_api) -> None:
    api, _ = make_api(config, [FakeResponse(500, {"detail": "ensemble unavailable"})])
    with pytest.raises(StylistApiError) as excinfo:
        ColorAnalysisClient(api).analyze(_face(tmp_path))
    assert not isinstance(excinfo.value, NoFaceDetectedError)
    assert excinfo.value.detail == "ensemble unavailable"


def test_latest_result_404_means_none(auth_config: StylistConfig, make_api) -> None:
    api, _ = make_api(auth_config, [FakeResponse(404, {"detail": "No results"})])
    assert ColorAnalysisClient(api).latest_result() is None


def test_latest_result_parses_first_entry(auth_config: StylistConfig, make_api) -> None:
    api, session = make_api(
        auth_config, [FakeResponse(200, [{"confidence": 0.4, "personal_color_type": "Light Spring", "season": "Spring"}])]
    )
    result = ColorAnalysisClient(api).latest_result()
    assert result.season == "spring"
    assert result.is_low_confidence
    assert session.calls[0]["params"] == {"limit": 1}


def test_save_result_requires_token(config: StylistConfig, make_api) -> None:
    api, session = make_api(config)
    with pytest.raises(NotAuthenticatedError):
        ColorAnalysisClient(api).save_result(ColorAnalysisResult(confidence=0.9, personal_color_type="Cool Winter"))
    assert session.calls == []


def test_update_face_image_keeps_profile(tmp_path: Path, auth_config: StylistConfig, make_api) -> None:
    api, session = make_api(auth_config, [FakeResponse(200, {"height": 170, "face_image": "data:image/png;base64,AA"})])
    profile = UserProfilePayload(height=170, gender="female")

    updated = ColorAnalysisClient(api).update_face_image(_face(tmp_path, "face.png"), profile=profile)

    body = session.calls[0]["json"]
    assert body["height"] == 170
    assert body["gender"] == "female"
    assert body["face_image"].startswith("data:image/png;base64,")
    assert updated.face_image == "data:image/png;base64,AA"


def test_upload_photo_sends_multipart_file(tmp_path: Path, config: StylistConfig, make_api) -> None:
    api, session = make_api(config, [FakeResponse(200, {"filename": "capture.png", "size": 10})])

    result = ColorAnalysisClient(api).upload_photo(_face(tmp_path, "capture.png"))

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://api.test/api/test/upload"
    assert call["files"] == {"file": ("capture.png", b"face-bytes", "image/png")}
    assert call["json"] is None
    assert "Content-Type" not in call["headers"]
    assert result["filename"] == "capture.png"


@pytest.mark.parametrize(
    "name, expected",
    [("shot.jpg", "image/jpeg"), ("shot.HEIC", "image/heic"), ("shot", "image/jpeg")],
)
def test_upload_mime_type(name: str, expected: str) -> None:
    assert upload_mime_type(Path(name)) == expected


def test_upload_photo_failure_raises(tmp_path: Path, config: StylistConfig, make_api) -> None:
    api, _ = make_api(config, [FakeResponse(413, {"detail": "File too large"})])
    with pytest.raises(StylistApiError) as excinfo:
        ColorAnalysisClient(api).upload_photo(_face(tmp_path))
    assert excinfo.value.status_code == 413
