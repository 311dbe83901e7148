import base64
from unittest.mock import MagicMock, patch

import pytest
import requests

from core.exceptions import ImageFetchError
from core.models import Problem
from services.pdf.image_loader import ImageLoader, answer_image_refs, problem_image_refs, to_data_uri


def _response(status=200, content=b"PNGDATA"):
    r = MagicMock()
    r.status_code = status
    r.content = content
    return r


def test_load_returns_data_uri():
    with patch("services.pdf.image_loader.requests.get", return_value=_response()) as get:
        uri = ImageLoader("http://img.local/", timeout=5).load("1001.png")
    get.assert_called_once_with("http://img.local/1001.png", timeout=5)
    assert uri == "data:image/png;base64," + base64.b64encode(b"PNGDATA").decode()


def test_korean_filename_is_quoted():
    loader = ImageLoader("http://img.local")
    assert loader.url_for("경제_1.png").startswith("http://img.local/%EA%B2%BD")


def test_http_error_raises():
    with patch("services.pdf.image_loader.requests.get", return_value=_response(404)):
        with pytest.raises(ImageFetchError) as exc:
            ImageLoader("http://img.local").load("x.png")
    assert exc.value.filename == "x.png"


def test_network_error_raises():
    with patch("services.pdf.image_loader.requests.get", side_effect=requests.ConnectionError("down")):
        with pytest.raises(ImageFetchError):
            ImageLoader("http://img.local").load("x.png")


def test_empty_body_and_filename_raise():
    session = MagicMock()
    session.get.return_value = _response(content=b"")
    loader = ImageLoader("http://img.local", session=session)
    with pytest.raises(ImageFetchError):
        loader.load("x.png")
    with pytest.raises(ImageFetchError):
        loader.load("")


def test_load_many_preserves_order():
    session = MagicMock()
    session.get.side_effect = lambda url, timeout: _response(content=url.encode())
    uris = ImageLoader("http://h", session=session).load_many(["b.png", "a.jpg"])
    assert base64.b64decode(uris[0].split(",", 1)[1]) == b"http://h/b.png"
    assert uris[1].startswith("data:image/jpeg;base64,")


def test_image_refs_skip_missing_and_answerless():
    problems = [
        Problem(id="1", problem_filename="1.png", answer_filename="1_a.png"),
        Problem(id="2", is_missing=True),
        Problem(id="3", problem_filename="3.png"),
    ]
    assert problem_image_refs(problems) == ["1.png", "3.png"]
    assert answer_image_refs(problems) == ["1_a.png"]


def test_to_data_uri_default_extension():
    assert to_data_uri(b"x", "noext").startswith("data:image/png;base64,")
