# app/services/document_service.py
"""
Entry receipt rendering.

Draws a printable PNG of a vehicle entry (header, 14-digit code, people,
plates, destination, timestamps) and returns it as a data URL for the client's
preview/print dialog. Pure function of the entry: nothing is written to the DB.
Never raises: failures come back as DocumentResult(success=False, error=...).
"""

import base64
import io
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from app.config import settings
from app.utils.logger import get_logger

logger = get_logger(__name__)

PAGE_WIDTH = 800
MARGIN = 40
LINE_HEIGHT = 28
CODE_HEIGHT = 60

STATUS_LABELS = {
    "awaiting_yard": "AGUARDANDO PÁTIO",
    "released": "DENTRO DA FÁBRICA",
    "exited": "SAIU",
}


@dataclass
class DocumentResult:
    success: bool
    image_url: Optional[str] = None
    error: Optional[str] = None


def _fmt(ts: Optional[datetime]) -> str:
    return ts.strftime("%d/%m/%Y %H:%M:%S") if ts else "-"


def _font(size: int):
    try:
        return ImageFont.load_default(size=size)
    except TypeError:   # Pillow < 10.1 has no sized default font
        return ImageFont.load_default()


def receipt_lines(entry) -> list[tuple[str, str]]:
    """(label, value) rows printed under the code. Optional fields only when filled."""
    rows = [("Motorista", entry.driver_name)]
    if entry.assistant1_name:
        rows.append(("Ajudante 1", entry.assistant1_name))
    if entry.assistant2_name:
        rows.append(("Ajudante 2", entry.assistant2_name))
    rows.append(("Transportadora", entry.transport_company_name))
    rows.append(("Placa 1", entry.plate1))
    if entry.plate2:
        rows.append(("Placa 2", entry.plate2))
    if entry.plate3:
        rows.append(("Placa 3", entry.plate3))
    rows += [
        ("Destino", entry.internal_destination_name),
        ("Movimentação", entry.movement_type),
        ("Chegada", _fmt(entry.arrival_timestamp)),
    ]
    if entry.liberation_timestamp:
        rows.append(("Liberação", _fmt(entry.liberation_timestamp)))
    if entry.liberated_by:
        rows.append(("Liberado por", entry.liberated_by))
    rows.append(("Registrado por", entry.registered_by))
    rows.append(("Status", STATUS_LABELS.get(entry.status, entry.status)))
    if entry.observation:
        rows.append(("Observação", entry.observation))
    return rows


def render_entry_png(entry) -> bytes:
    rows = receipt_lines(entry)
    height = MARGIN * 2 + LINE_HEIGHT * 2 + CODE_HEIGHT + LINE_HEIGHT * (len(rows) + 1)

    image = Image.new("RGB", (PAGE_WIDTH, height), "white")
    draw = ImageDraw.Draw(image)
    title_font, code_font, body_font = _font(26), _font(44), _font(18)

    y = MARGIN
    draw.text((MARGIN, y), settings.DOCUMENT_TITLE, fill="black", font=title_font)
    y += LINE_HEIGHT + 8
    draw.text((MARGIN, y), "COMPROVANTE DE ENTRADA DE VEÍCULO", fill="black", font=body_font)
    y += LINE_HEIGHT

    draw.rectangle([MARGIN, y, PAGE_WIDTH - MARGIN, y + CODE_HEIGHT], outline="black", width=2)
    draw.text((MARGIN + 16, y + 6), entry.id, fill="black", font=code_font)
    y += CODE_HEIGHT + LINE_HEIGHT

    for label, value in rows:
        draw.text((MARGIN, y), f"{label}:", fill="black", font=body_font)
        draw.text((MARGIN + 180, y), str(value), fill="black", font=body_font)
        y += LINE_HEIGHT

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_entry_document(entry) -> DocumentResult:
    try:
        png = render_entry_png(entry)
    except Exception as e:
        logger.error(f"[DOCUMENT] Failed for entry {getattr(entry, 'id', '?')}: {e}", exc_info=True)
        return DocumentResult(success=False, error=str(e))

    logger.info(f"[DOCUMENT] Receipt for {entry.id} rendered ({len(png)} bytes)")
    return DocumentResult(success=True, image_url="data:image/png;base64," + base64.b64encode(png).decode("ascii"))
