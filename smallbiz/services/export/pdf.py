"""
PDF Report Export (placeholder)

Produces a one-page PDF that carries only the application title, the
report label and the generation date. Report content is NOT rendered;
the page is a placeholder until report rendering is built.
"""

from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from PIL import Image, ImageDraw, ImageFont

from smallbiz.observability import get_logger


PDF_MIME_TYPE = "application/pdf"

# A4 at 72 dpi
PAGE_SIZE = (595, 842)
PLACEHOLDER_NOTICE = "PDF export feature - Full implementation requires report content rendering"


def _font(size: int) -> ImageFont.ImageFont:
    for candidate in ("arial.ttf", "DejaVuSans.ttf"):
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue
    return ImageFont.load_default()


def report_filename(report_type: str) -> str:
    return f"{report_type}-report.pdf"


def export_report_pdf(
    report_type: str,
    title: str = "SmallBiz BookKeeping Pro",
    generated_on: Optional[date] = None,
    destination: Optional[Union[str, Path]] = None,
) -> bytes:
    """
    Render the placeholder report page.

    Returns the PDF bytes; also writes them to destination if given.
    """
    generated_on = generated_on or date.today()

    page = Image.new("RGB", PAGE_SIZE, "white")
    draw = ImageDraw.Draw(page)
    # Lines sit 20, 30 and 40 mm from the top, 20 mm from the left (in points)
    draw.text((57, 57), title, fill="black", font=_font(16))
    draw.text((57, 85), f"Report: {report_type}", fill="black", font=_font(12))
    draw.text((57, 113), f"Generated: {generated_on.isoformat()}", fill="black", font=_font(12))

    bio = BytesIO()
    page.save(bio, format="PDF", resolution=72.0, title=f"{title} - {report_type}")
    content = bio.getvalue()

    if destination is not None:
        Path(destination).write_bytes(content)

    get_logger(__name__).info(
        "export_generated",
        format="pdf",
        report_type=report_type,
        placeholder=True,
    )
    return content
