import logging
import os
from functools import lru_cache
from io import BytesIO
from typing import List, Optional, Tuple
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont, TTFError
from reportlab.pdfgen import canvas

from ...application.ports.document_renderer import DocumentRenderer, PrescriptionDocument

logger = logging.getLogger(__name__)

NO_MEDICATIONS = "No medications prescribed"

MARGIN = 40
LINE_HEIGHT = 14

# TrueType faces with Latin and Devanagari coverage, tried in order when no font is configured
UNICODE_FONT_CANDIDATES = (
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    "/usr/share/fonts/truetype/lohit-devanagari/Lohit-Devanagari.ttf",
    "/usr/share/fonts/truetype/noto/NotoSansDevanagari-Regular.ttf",
    "/usr/share/fonts/truetype/fonts-deva-extra/kalimati.ttf",
)


@lru_cache(maxsize=None)
def find_unicode_font() -> Optional[str]:
    for path in UNICODE_FONT_CANDIDATES:
        if os.path.isfile(path):
            return path
    logger.warning("No Unicode TrueType font found; PDFs fall back to Helvetica (Latin-1 only)")
    return None


@lru_cache(maxsize=None)
def register_ttf(path: str) -> Optional[str]:
    """Register a TrueType file with reportlab once. Returns the font name, or None if unusable."""
    name = "IC-" + os.path.splitext(os.path.basename(path))[0]
    try:
        pdfmetrics.registerFont(TTFont(name, path))
    except (TTFError, OSError) as e:
        logger.warning(f"Could not load PDF font {path}: {e}")
        return None
    return name


def identity_lines(document: PrescriptionDocument) -> List[str]:
    patient = document.patient_name
    if document.patient_email:
        patient += f" ({document.patient_email})"
    doctor = f"Dr. {document.doctor_name}"
    if document.doctor_specialization:
        doctor += f", {document.doctor_specialization}"
    lines = [f"Patient: {patient}", f"Doctor: {doctor}"]
    if document.visit_date:
        visit = document.visit_date.isoformat()
        if document.visit_time:
            visit += f" {document.visit_time}"
        lines.append(f"Visit date: {visit}")
    return lines


def medication_line(index: int, item: dict) -> str:
    parts = [item.get("medication", "")]
    for key in ("dosage", "frequency", "duration"):
        if item.get(key):
            parts.append(item[key])
    line = f"{index}. " + " - ".join(parts)
    if item.get("instructions"):
        line += f" ({item['instructions']})"
    return line


def prescription_sections(document: PrescriptionDocument) -> List[Tuple[str, List[str]]]:
    """Headed sections in print order. A section is only present when it has content."""
    sections = [("Diagnosis", [document.diagnosis])]
    items = [medication_line(i, item) for i, item in enumerate(document.prescription or [], start=1)]
    sections.append(("Prescription", items or [NO_MEDICATIONS]))
    if document.notes and document.notes.strip():
        sections.append(("Notes", [document.notes.strip()]))
    if document.follow_up_required and (document.follow_up_date or document.follow_up_notes):
        follow_up = []
        if document.follow_up_date:
            follow_up.append(f"Date: {document.follow_up_date.isoformat()}")
        if document.follow_up_notes:
            follow_up.append(document.follow_up_notes)
        sections.append(("Follow-up", follow_up))
    return sections


class ReportLabPrescriptionRenderer(DocumentRenderer):
    def __init__(self, pagesize=A4, font_path: Optional[str] = None, bold_font_path: Optional[str] = None) -> None:
        self.pagesize = pagesize
        path = font_path or find_unicode_font()
        # Names and free text go through the body font; headings are fixed ASCII
        self.body_font = (register_ttf(path) if path else None) or "Helvetica"
        self.bold_font = (register_ttf(bold_font_path) if bold_font_path else None) or "Helvetica-Bold"

    def render_prescription(self, document: PrescriptionDocument) -> bytes:
        buffer = BytesIO()
        # fixed metadata, no compression: same input, same bytes
        c = canvas.Canvas(buffer, pagesize=self.pagesize, invariant=1, pageCompression=0)
        c.setTitle(f"Prescription {document.record_id}")
        width, height = self.pagesize
        text_width = width - 2 * MARGIN
        y = height - MARGIN

        def ensure_room(lines_needed: int = 1):
            nonlocal y
            if y - lines_needed * LINE_HEIGHT < MARGIN:
                c.showPage()
                y = height - MARGIN

        def write(text: str, font: Optional[str] = None, size: int = 10):
            nonlocal y
            font = font or self.body_font
            for line in simpleSplit(text, font, size, text_width) or [""]:
                ensure_room()
                c.setFont(font, size)
                c.drawString(MARGIN, y, line)
                y -= LINE_HEIGHT

        write("PRESCRIPTION", self.bold_font, 14)
        write(f"Record: {document.record_id}", size=8)
        y -= LINE_HEIGHT / 2
        for line in identity_lines(document):
            write(line)

        for heading, lines in prescription_sections(document):
            y -= LINE_HEIGHT / 2
            ensure_room(2)
            write(heading, self.bold_font, 11)
            for line in lines:
                write(line)

        c.showPage()
        c.save()
        return buffer.getvalue()
