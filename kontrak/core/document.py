# ------------------------------------------------------------------------
# File: document.py
# Location: kontrak/core/document.py
# Description:
#     Builds the contract PDF from already-rendered contract text. Each
#     non-empty line becomes a heading ("# "), a subheading ("## ") or a
#     justified paragraph with **bold** markers unwrapped. A signature
#     section is appended at the end; its confirmation, signature image and
#     signer details only appear once the contract carries a signature and
#     a signed timestamp. The whole document is produced in memory with
#     reportlab and returned as bytes, or a DocumentGenerationError is
#     raised and nothing is returned.
# ------------------------------------------------------------------------

import asyncio
import io
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_LEFT
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle
from reportlab.pdfgen import canvas
from reportlab.platypus import Image, Paragraph

from kontrak.core.errors import DocumentGenerationError
from kontrak.core.layout import PageLayout
from kontrak.core.renderer import format_date_id, format_datetime_id
from kontrak.core.signature import decode_signature_image
from kontrak.logging_config import configure_logging

logger = configure_logging(name="kontrak.document", logfile="kontrak.log", level=None)

PDF_AUTHOR = "TradeStation Kontrak Digital"
PDF_CREATOR = "TradeStation System"
DOCUMENT_HEADER = "KONTRAK DIGITAL TRADESTATION"
SIGNATURE_HEADING = "TANDA TANGAN DIGITAL"
SIGNED_CONFIRMATION = "KONTRAK TELAH DITANDATANGANI SECARA DIGITAL"

SIGNATURE_MAX_WIDTH = 150
SIGNATURE_MAX_HEIGHT = 60

BOLD_PATTERN = re.compile(r"\*\*(.*?)\*\*")


def _style(name, font, size, alignment, line_gap=0.0):
    return ParagraphStyle(
        name,
        fontName=font,
        fontSize=size,
        leading=size * 1.2 + line_gap,
        alignment=alignment,
    )


STYLES = {
    "header": _style("header", "Helvetica-Bold", 18, TA_CENTER),
    "header_number": _style("header_number", "Helvetica", 12, TA_CENTER),
    "header_date": _style("header_date", "Helvetica", 10, TA_CENTER),
    "heading": _style("heading", "Helvetica-Bold", 14, TA_CENTER),
    "subheading": _style("subheading", "Helvetica-Bold", 12, TA_LEFT),
    "body": _style("body", "Helvetica", 10, TA_JUSTIFY, line_gap=2),
    "signature_heading": _style("signature_heading", "Helvetica-Bold", 12, TA_CENTER),
    "signature_confirmation": _style("signature_confirmation", "Helvetica-Bold", 10, TA_CENTER),
    "signature_detail": _style("signature_detail", "Helvetica", 10, TA_CENTER),
}


@dataclass
class ContractDocument:
    """Everything the formatter needs about one contract."""

    number: str
    title: str
    created_at: Optional[datetime]
    body: str
    signer_name: str
    trading_id: str
    signature_data: Optional[str] = None
    signed_at: Optional[datetime] = None

    @property
    def is_signed(self) -> bool:
        return bool(self.signature_data) and self.signed_at is not None


def contract_filename(number: str) -> str:
    return f"Kontrak_{number}.pdf"


def classify_line(line: str):
    """Return (kind, text) for one trimmed, non-empty line of contract text."""
    if line.startswith("# "):
        return "heading", line[2:]
    if line.startswith("## "):
        return "subheading", line[3:]
    return "body", BOLD_PATTERN.sub(r"\1", line)


def _paragraph(text: str, style_name: str) -> Paragraph:
    return Paragraph(escape(text), STYLES[style_name])


def _spacing(style_name: str, lines: float) -> float:
    return STYLES[style_name].leading * lines


def _signature_flowable(signature_data: str) -> Image:
    signature_img = decode_signature_image(signature_data)
    width, height = signature_img.size
    scale = min(SIGNATURE_MAX_WIDTH / width, SIGNATURE_MAX_HEIGHT / height, 1.0)

    png_buffer = io.BytesIO()
    signature_img.save(png_buffer, format="PNG")
    png_buffer.seek(0)

    flowable = Image(png_buffer, width=width * scale, height=height * scale, mask="auto")
    flowable.hAlign = "CENTER"
    return flowable


def _write_header(layout: PageLayout, document: ContractDocument) -> None:
    layout.emit(_paragraph(DOCUMENT_HEADER, "header"), _spacing("header", 0.3))
    layout.emit(_paragraph(f"Nomor Kontrak: {document.number}", "header_number"))
    layout.emit(_paragraph(f"Dibuat pada: {format_date_id(document.created_at)}", "header_date"),
                _spacing("header_date", 1))


def _write_body(layout: PageLayout, body: str) -> None:
    for raw_line in body.split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        kind, text = classify_line(line)
        if kind == "heading":
            layout.emit(_paragraph(text, "heading"), _spacing("heading", 0.5))
        elif kind == "subheading":
            layout.emit(_paragraph(text, "subheading"), _spacing("subheading", 0.3))
        else:
            layout.emit(_paragraph(text, "body"), _spacing("body", 0.2))


def _write_signature_section(layout: PageLayout, document: ContractDocument) -> None:
    layout.move_down(_spacing("body", 2))
    layout.emit(_paragraph(SIGNATURE_HEADING, "signature_heading"), _spacing("signature_heading", 0.5))

    if not document.is_signed:
        return

    confirmation = Paragraph(
        f'<font name="ZapfDingbats">4</font> {SIGNED_CONFIRMATION}',
        STYLES["signature_confirmation"],
    )
    layout.emit(confirmation, _spacing("signature_confirmation", 0.3))
    layout.emit(_signature_flowable(document.signature_data), _spacing("signature_detail", 0.3))
    layout.emit(_paragraph(f"Ditandatangani oleh: {document.signer_name or ''}", "signature_detail"))
    layout.emit(_paragraph(f"Trading ID: {document.trading_id or ''}", "signature_detail"))
    layout.emit(_paragraph(f"Tanggal: {format_datetime_id(document.signed_at)}", "signature_detail"))


def build_contract_pdf(document: ContractDocument) -> bytes:
    """Lay out the full contract and return the finished PDF bytes."""
    try:
        logger.info(f"Building PDF for contract {document.number}")
        buffer = io.BytesIO()
        pdf_canvas = canvas.Canvas(buffer, pagesize=letter)
        pdf_canvas.setTitle(f"Kontrak {document.number}")
        pdf_canvas.setAuthor(PDF_AUTHOR)
        pdf_canvas.setSubject(document.title or "")
        pdf_canvas.setCreator(PDF_CREATOR)

        layout = PageLayout(pdf_canvas)
        _write_header(layout, document)
        _write_body(layout, document.body or "")
        _write_signature_section(layout, document)

        pdf_canvas.save()
        logger.info(f"PDF for contract {document.number} built with {layout.page_number} page(s)")
        return buffer.getvalue()
    except Exception as exc:
        logger.exception(f"Error building PDF for contract {document.number}")
        raise DocumentGenerationError(f"Failed to generate document for contract {document.number}") from exc


async def generate_contract_pdf(document: ContractDocument) -> bytes:
    """Build the contract PDF off the event loop; resolves to the full buffer."""
    return await asyncio.to_thread(build_contract_pdf, document)
