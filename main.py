"""
학습지 메인 진입점

설정을 읽어 DB/서비스를 연결하고, 저장된 학습지를 PDF 파일로 내보냅니다.
    python main.py <학습지 ID> <출력.pdf> [--answers] [--seed]
"""
import argparse
import logging
import sys

from core.config import AppConfig, load_config
from core.exceptions import WorksheetError
from database.sqlite_connection import SQLiteConnection
from services.pdf.document_builder import build_document
from services.pdf.image_loader import ImageLoader, answer_image_refs, problem_image_refs
from services.pdf.renderer import PdfRenderer
from services.worksheet import WorksheetService


logger = logging.getLogger(__name__)


def export_worksheet_pdf(
    service: WorksheetService,
    loader: ImageLoader,
    renderer: PdfRenderer,
    worksheet_id: str,
    include_answers: bool = False,
) -> bytes:
    """학습지 → 이미지 로드 → 문서 정의 → PDF 바이트"""
    ws, problems = service.get_worksheet(worksheet_id)
    images = loader.load_many(problem_image_refs(problems))
    answers = loader.load_many(answer_image_refs(problems)) if include_answers else None
    doc = build_document(
        images,
        answers,
        title=ws.title,
        author=ws.author,
        created_at=ws.created_at,
    )
    return renderer.render(doc)


def _parse_args(argv):
    parser = argparse.ArgumentParser(description="학습지 PDF 내보내기")
    parser.add_argument("worksheet_id", help="학습지 ID")
    parser.add_argument("output", help="저장할 PDF 경로")
    parser.add_argument("--answers", action="store_true", help="해설 페이지 포함")
    parser.add_argument("--seed", action="store_true", help="빈 DB에 목업 데이터 저장")
    parser.add_argument("--config", default=None, help="설정 파일 경로")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """메인 함수"""
    args = _parse_args(argv)
    config: AppConfig = load_config(args.config)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = SQLiteConnection(config.resolved_db_path())
    if not db.connect():
        logger.error("DB에 연결할 수 없습니다: %s", db.path)
        return 1

    try:
        if args.seed:
            from dev.mock_data import seed
            logger.info("목업 데이터 저장: %s", seed(db))

        pdf = export_worksheet_pdf(
            WorksheetService(db, config),
            ImageLoader(config.image_base_url, config.request_timeout),
            PdfRenderer(config.font_path),
            args.worksheet_id,
            include_answers=args.answers,
        )
        with open(args.output, "wb") as f:
            f.write(pdf)
        logger.info("PDF 저장 완료: %s (%d bytes)", args.output, len(pdf))
        return 0
    except WorksheetError as e:
        logger.error("PDF 내보내기 실패: %s", e)
        return 1
    finally:
        db.disconnect()


if __name__ == "__main__":
    sys.exit(main())
