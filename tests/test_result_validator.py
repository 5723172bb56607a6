import pytest

from soundsnap.errors import ResultValidationError
from soundsnap.services.result_validator import normalize_payload, validate_result


def test_top_level_and_nested_payloads_match(video_payload):
    top_level = validate_result(video_payload)
    nested = validate_result({"data": video_payload, "requestId": "req-1"})

    assert top_level == nested
    assert top_level.video.url == "https://cdn/out123.mp4"
    assert top_level.video.content_type == "video/mp4"
    assert top_level.video.file_name == "out123.mp4"
    assert top_level.video.file_size == 2048


def test_optional_fields_may_be_absent():
    result = validate_result({"video": {"url": "https://cdn/a.mp4"}, "seed": 7})
    assert result.video.url == "https://cdn/a.mp4"
    assert result.video.content_type is None
    assert result.video.file_size is None
    assert result.extra == {"seed": 7}


@pytest.mark.parametrize("raw", [None, {}, {"data": None}, {"data": {}}, "not a payload"])
def test_missing_payload(raw):
    with pytest.raises(ResultValidationError, match="payload is missing"):
        validate_result(raw)


@pytest.mark.parametrize("raw", [{"audio": {}}, {"data": {"video": None}}, {"video": "https://cdn/a.mp4"}])
def test_missing_video_descriptor(raw):
    with pytest.raises(ResultValidationError, match="video descriptor"):
        validate_result(raw)


@pytest.mark.parametrize("video", [{}, {"url": ""}, {"url": "   "}, {"url": None}])
def test_missing_or_empty_url(video):
    with pytest.raises(ResultValidationError, match="video URL"):
        validate_result({"data": {"video": video}})


def test_normalize_prefers_data_field(video_payload):
    assert normalize_payload({"data": video_payload}) is video_payload
    assert normalize_payload(video_payload) is video_payload
