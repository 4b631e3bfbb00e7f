"""Visual approval stamps on stored PDFs.

Uses reportlab to draw a single-page overlay and pypdf to merge it onto
the target page.
"""

import io
import logging

from pypdf import PdfReader, PdfWriter
from reportlab.lib.colors import red
from reportlab.pdfgen import canvas

from docreview.services.documents import FilesystemDocumentStore

logger = logging.getLogger(__name__)

STAMP_FONT = "Helvetica"
STAMP_FONT_SIZE = 12


def clamp_page_index(page_number: int, page_count: int) -> int:
    """Convert a 1-based page number into a valid 0-based index."""
    return max(0, min(page_number - 1, page_count - 1))


def build_overlay(width_pt: float, height_pt: float, label: str, x: float, y: float) -> bytes:
    """
    Render ``label`` on a transparent page of the given size.

    ``x``/``y`` are measured from the top-left corner; the text box top sits
    at ``y``.
    """
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=(width_pt, height_pt))
    c.setFillColor(red)
    c.setFont(STAMP_FONT, STAMP_FONT_SIZE)
    # reportlab measures from the bottom-left and draws from the baseline
    c.drawString(x, height_pt - y - STAMP_FONT_SIZE, label)
    c.showPage()
    c.save()
    return buf.getvalue()


class PdfStampRenderer:
    """Draws approval labels onto PDFs held in a document store."""

    def __init__(self, store: FilesystemDocumentStore):
        self.store = store

    def render(self, pdf_bytes: bytes, label: str, page_number: int, x: float, y: float) -> bytes:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        writer = PdfWriter()
        index = clamp_page_index(page_number, len(reader.pages))

        for i, page in enumerate(reader.pages):
            if i == index:
                w = float(page.mediabox.width)
                h = float(page.mediabox.height)
                overlay = PdfReader(io.BytesIO(build_overlay(w, h, label, x, y))).pages[0]
                page.merge_page(overlay)
            writer.add_page(page)

        out = io.BytesIO()
        writer.write(out)
        return out.getvalue()

    def apply_stamp(self, document_ref: str, label: str, page_number: int, x: float, y: float) -> None:
        """Stamp the stored document in place."""
        stamped = self.render(self.store.load(document_ref), label, page_number, x, y)
        self.store.save(document_ref, stamped)
        logger.info(f"Applied stamp '{label}' to {document_ref} page {page_number}")
