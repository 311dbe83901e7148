import base64
import json
from unittest.mock import MagicMock, patch

from main import export_worksheet_pdf, main
from services.pdf.image_loader import ImageLoader
from services.pdf.renderer import PdfRenderer
from services.worksheet import WorksheetService


PIXEL = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def _png_response(*args, **kwargs):
    r = MagicMock()
    r.status_code = 200
    r.content = PIXEL
    return r


def test_export_worksheet_pdf(seeded_db, config):
    service = WorksheetService(seeded_db, config)
    worksheet_id, _ = service.create_worksheet("export", "T", None, ["1001", "1003", "gone"])
    session = MagicMock()
    session.get.side_effect = _png_response

    pdf = export_worksheet_pdf(
        service, ImageLoader("http://img.local", session=session), PdfRenderer(), worksheet_id, include_answers=True
    )
    assert pdf.startswith(b"%PDF")
    requested = [c.args[0] for c in session.get.call_args_list]
    # 사라진 문제와 해설 없는 문제(1003)는 이미지 요청 없음
    assert requested == [
        "http://img.local/1001.png",
        "http://img.local/1003.png",
        "http://img.local/1001_a.png",
    ]


def _write_config(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "database": {"path": str(tmp_path / "cli.db")},
        "pdf": {"image_base_url": "http://img.local"},
    }), encoding="utf-8")
    return str(path)


def test_main_missing_worksheet_returns_error(tmp_path):
    out = tmp_path / "out.pdf"
    assert main(["42", str(out), "--config", _write_config(tmp_path), "--seed"]) == 1
    assert not out.exists()


def test_main_writes_pdf(tmp_path):
    from core.config import load_config
    from database.sqlite_connection import SQLiteConnection

    config_path = _write_config(tmp_path)
    db = SQLiteConnection(load_config(config_path).resolved_db_path())
    assert db.connect()
    worksheet_id, _ = WorksheetService(db).create_worksheet("cli", "", None, ["x"])
    db.disconnect()

    out = tmp_path / "out.pdf"
    with patch("services.pdf.image_loader.requests.get", side_effect=_png_response):
        assert main([worksheet_id, str(out), "--config", config_path]) == 0
    assert out.read_bytes().startswith(b"%PDF")
