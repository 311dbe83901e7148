"""
PDF 렌더러 (ReportLab)

document_builder가 만든 문서 정의(dict)를 PDF 바이트로 변환합니다.
- columns → 2열 Table (열 사이 간격 columnGap)
- image(data URI) → platypus Image (지정 폭, 비율 유지)
- text → Paragraph, canvas(line) → 가로선, pageBreak → PageBreak
- footer → 페이지마다 캔버스에 직접 그림 (구분선 + 쪽 번호)

한글은 pdf.font_path에 지정한 TTF를 등록해서 사용하고, 없으면 Helvetica.
"""
from __future__ import annotations

import base64
import io
import logging
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import (
    Flowable,
    Image as RLImage,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)
from xml.sax.saxutils import escape

from core.exceptions import RenderError


logger = logging.getLogger(__name__)

DEFAULT_FONT = "Helvetica"
KOREAN_FONT_NAME = "WorksheetKorean"

_ALIGN = {"left": TA_LEFT, "center": TA_CENTER, "right": TA_RIGHT}


class HorizontalRule(Flowable):
    """canvas line 노드 (x1→x2, 두께/색)"""

    def __init__(self, x1: float, x2: float, line_width: float, color: str, offset: float = 0):
        super().__init__()
        self.x1, self.x2 = x1, x2
        self.line_width = line_width
        self.color = color
        self.offset = offset

    def wrap(self, avail_width, avail_height):
        return avail_width, self.line_width

    def draw(self):
        self.canv.setStrokeColor(colors.HexColor(self.color))
        self.canv.setLineWidth(self.line_width)
        self.canv.line(self.x1 + self.offset, 0, self.x2 + self.offset, 0)


def decode_data_uri(uri: str) -> bytes:
    if not uri.startswith("data:") or "," not in uri:
        raise RenderError("이미지는 data URI여야 합니다.")
    header, payload = uri.split(",", 1)
    if ";base64" not in header:
        raise RenderError("base64 이미지만 지원합니다.")
    try:
        return base64.b64decode(payload, validate=True)
    except ValueError as e:
        raise RenderError(f"이미지 디코딩 실패: {e}") from e


class PdfRenderer:
    def __init__(self, font_path: Optional[str] = None):
        self.font_name = DEFAULT_FONT
        if font_path:
            try:
                pdfmetrics.registerFont(TTFont(KOREAN_FONT_NAME, font_path))
                self.font_name = KOREAN_FONT_NAME
            except Exception as e:
                # 폰트 등록 실패 시 기본 폰트
                logger.warning("폰트 등록 실패 (%s): %s", font_path, e)

    # ----------------------------
    # 노드 → Flowable
    # ----------------------------
    def _margin(self, node: dict) -> List[float]:
        m = node.get("margin") or [0, 0, 0, 0]
        return [float(x) for x in m]

    def _paragraph(self, node: dict) -> Paragraph:
        size = float(node.get("fontSize", 11))
        _, top, _, bottom = self._margin(node)
        style = ParagraphStyle(
            "node",
            fontName=self.font_name,
            fontSize=size,
            leading=size * 1.3,
            textColor=colors.HexColor(node.get("color", "#000000")),
            alignment=_ALIGN.get(node.get("alignment", "left"), TA_LEFT),
            spaceBefore=top,
            spaceAfter=bottom,
        )
        return Paragraph(escape(str(node.get("text", ""))), style)

    def _image(self, node: dict) -> RLImage:
        data = decode_data_uri(node["image"])
        width = float(node.get("width", 240))
        try:
            iw, ih = ImageReader(io.BytesIO(data)).getSize()
        except Exception as e:
            # PIL/ReportLab 이미지 오류 → RenderError
            raise RenderError(f"이미지를 읽을 수 없습니다: {e}") from e
        img = RLImage(io.BytesIO(data), width=width, height=width * ih / iw)
        img.hAlign = node.get("alignment", "center").upper()
        return img

    def _columns(self, node: dict, avail_width: float) -> List[Flowable]:
        cells = [self._image(c) if "image" in c else self._paragraph(c) for c in node.get("columns", [])]
        while len(cells) < 2:
            cells.append("")
        gap = float(node.get("columnGap", 0))
        col_width = (avail_width - gap) / 2
        cell_bottom = max((self._margin(c)[3] for c in node.get("columns", [])), default=0)
        # 왼쪽 열 오른쪽 여백이 열 간격
        table = Table([cells], colWidths=[col_width + gap, col_width])
        table.setStyle(TableStyle([
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("LEFTPADDING", (0, 0), (-1, -1), 0),
            ("RIGHTPADDING", (0, 0), (0, -1), gap),
            ("RIGHTPADDING", (1, 0), (1, -1), 0),
            ("BOTTOMPADDING", (0, 0), (-1, -1), cell_bottom),
        ]))
        flows: List[Flowable] = [table]
        _, _, _, bottom = self._margin(node)
        if bottom:
            flows.append(Spacer(1, bottom))
        return flows

    def _canvas(self, node: dict) -> List[Flowable]:
        flows: List[Flowable] = []
        left, _, _, bottom = self._margin(node)
        for shape in node.get("canvas", []):
            if shape.get("type") != "line":
                raise RenderError(f"지원하지 않는 도형: {shape.get('type')}")
            flows.append(HorizontalRule(
                float(shape.get("x1", 0)),
                float(shape.get("x2", 0)),
                float(shape.get("lineWidth", 1)),
                shape.get("lineColor", "#000000"),
                offset=left,
            ))
        if bottom:
            flows.append(Spacer(1, bottom))
        return flows

    def _flowables(self, content: List[dict], avail_width: float) -> List[Flowable]:
        story: List[Flowable] = []
        for node in content:
            if "pageBreak" in node:
                story.append(PageBreak())
            elif "columns" in node:
                story.extend(self._columns(node, avail_width))
            elif "canvas" in node:
                story.extend(self._canvas(node))
            elif "image" in node:
                story.append(self._image(node))
            elif "text" in node:
                story.append(self._paragraph(node))
            else:
                raise RenderError(f"알 수 없는 문서 노드: {sorted(node.keys())}")
        return story

    # ----------------------------
    # 꼬리말
    # ----------------------------
    def _draw_footer(self, footer: List[dict], canvas, doc) -> None:
        page_width, _ = doc.pagesize
        y = doc.bottomMargin - 4
        canvas.saveState()
        for node in footer:
            if "canvas" in node:
                for shape in node["canvas"]:
                    canvas.setStrokeColor(colors.HexColor(shape.get("lineColor", "#000000")))
                    canvas.setLineWidth(float(shape.get("lineWidth", 1)))
                    canvas.line(float(shape.get("x1", 0)), y, float(shape.get("x2", page_width)), y)
            elif node.get("pageNumber"):
                _, top, _, _ = self._margin(node)
                size = float(node.get("fontSize", 10))
                canvas.setFont(self.font_name, size)
                canvas.setFillColor(colors.HexColor(node.get("color", "#000000")))
                canvas.drawCentredString(page_width / 2, y - top - size, str(doc.page))
        canvas.restoreState()

    # ----------------------------
    # 렌더
    # ----------------------------
    def render(self, doc: dict) -> bytes:
        """문서 정의 → PDF 바이트"""
        if doc.get("pageSize", "A4") != "A4":
            raise RenderError(f"지원하지 않는 용지: {doc.get('pageSize')}")
        left, top, right, bottom = [float(x) for x in doc.get("pageMargins", [40, 60, 40, 30])]
        footer = doc.get("footer") or []

        buf = io.BytesIO()
        template = SimpleDocTemplate(
            buf,
            pagesize=A4,
            leftMargin=left,
            rightMargin=right,
            topMargin=top,
            bottomMargin=bottom,
        )
        story = self._flowables(doc.get("content") or [], template.width)
        if not story:
            story = [Spacer(1, 1)]

        def on_page(canvas, d):
            self._draw_footer(footer, canvas, d)

        try:
            template.build(story, onFirstPage=on_page, onLaterPages=on_page)
        except RenderError:
            raise
        except Exception as e:
            # LayoutError 등 ReportLab 오류 → RenderError
            raise RenderError(f"PDF 생성 실패: {e}") from e
        return buf.getvalue()
