"""Handles exporting a finished session as a plain-text file or a PDF document."""

import logging
import os
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from .exceptions import ExportError
from .languages import LanguageOption
from .models import Transcript
from .utils import ensure_dir_exists, sanitize_identifier
from .workflow import SessionState

logger = logging.getLogger(__name__)

DEFAULT_FONT = "Helvetica"
DEFAULT_BOLD_FONT = "Helvetica-Bold"
TAMIL_FONT = "SyncTransTamil"
TAMIL_BOLD_FONT = "SyncTransTamil-Bold"

TEXT_DIVIDER = "-" * 40
SOURCE_TITLE = "Original Transcript"

# Registered TTF names keyed by (base name, absolute font path).
_registered_fonts: Dict[Tuple[str, str], str] = {}


def translation_title(language: LanguageOption) -> str:
    return f"Translation ({language.name})"


def derive_base_name(source_name: Optional[str], language: LanguageOption) -> str:
    """
    Picks the stem used for export filenames.

    Audio sessions use the audio file's base name; pasted-text sessions use
    the sanitized language id (e.g. "Conversational Tamil" -> "conversationaltamil").
    """
    if source_name:
        base = os.path.splitext(os.path.basename(source_name))[0]
        if base:
            return base
    return sanitize_identifier(language.id) or "transcript"


class Exporter(ABC):
    """Abstract base class for export formats."""

    extension: str = ""

    @abstractmethod
    def write(self, source: Transcript, translation: Transcript, language: LanguageOption, output_path: str) -> str:
        """
        Writes the export artifact.

        Args:
            source: The original transcript.
            translation: The translated transcript.
            language: The translation target.
            output_path: Where to write the file.

        Returns:
            The path written.

        Raises:
            ExportError: If rendering or writing fails.
        """
        pass

    def filename(self, base_name: str) -> str:
        return f"{base_name}_translation.{self.extension}"


class TextExporter(Exporter):
    """Both transcripts as labeled "[timestamp] text" blocks in one UTF-8 file."""

    extension = "txt"

    def render(self, source: Transcript, translation: Transcript, language: LanguageOption) -> str:
        blocks = []
        for title, items in ((SOURCE_TITLE, source), (translation_title(language), translation)):
            lines = "\n".join(item.to_line() for item in items)
            blocks.append(f"{title}\n\n{lines}")
        return f"\n\n{TEXT_DIVIDER}\n\n".join(blocks) + "\n"

    def write(self, source: Transcript, translation: Transcript, language: LanguageOption, output_path: str) -> str:
        logger.info(f"Writing text export: {output_path}")
        try:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(self.render(source, translation, language))
        except IOError as e:
            logger.error(f"Failed to write text export to {output_path}: {e}", exc_info=True)
            raise ExportError(f"Could not write text file: {e}") from e
        return output_path


class PdfExporter(Exporter):
    """
    Paginated PDF of the translation: a bold title line followed by word-wrapped
    "[timestamp] text" lines, breaking to a new page whenever the next line
    would cross the bottom margin.
    """

    extension = "pdf"

    def __init__(
        self,
        tamil_font_path: Optional[str] = None,
        tamil_bold_font_path: Optional[str] = None,
        page_size: Tuple[float, float] = A4,
        margin: float = 40,
        title_size: float = 16,
        body_size: float = 11,
        leading: float = 15,
        canvas_factory: Callable[..., canvas.Canvas] = canvas.Canvas,
    ):
        """
        Initializes the PdfExporter.

        Args:
            tamil_font_path: TTF used for body text when the language needs Tamil script.
            tamil_bold_font_path: TTF used for the title in that case. Falls back to
                                  the regular Tamil font if omitted.
            page_size: Page width and height in points.
            margin: Margin on every side, in points.
            title_size: Title font size.
            body_size: Body font size.
            leading: Vertical distance between body lines.
            canvas_factory: Builds the reportlab canvas; replaceable in tests.
        """
        self.tamil_font_path = tamil_font_path
        self.tamil_bold_font_path = tamil_bold_font_path or tamil_font_path
        self.page_size = page_size
        self.margin = margin
        self.title_size = title_size
        self.body_size = body_size
        self.leading = leading
        self.canvas_factory = canvas_factory

    def _register_font(self, base_name: str, path: Optional[str]) -> str:
        """Registers the TTF once per path and returns the name it is registered under."""
        if not path or not os.path.isfile(path):
            raise ExportError(f"Font file for {base_name} not found: {path}. Set fonts.tamil_regular / fonts.tamil_bold in the config.")
        key = (base_name, os.path.abspath(path))
        if key in _registered_fonts:
            return _registered_fonts[key]

        taken = sum(1 for name, _ in _registered_fonts if name == base_name)
        name = base_name if not taken else f"{base_name}-{taken + 1}"
        try:
            pdfmetrics.registerFont(TTFont(name, path))
        except Exception as e:
            logger.error(f"Could not load font {path}: {e}", exc_info=True)
            raise ExportError(f"Could not load font {path}: {e}") from e
        _registered_fonts[key] = name
        logger.info(f"Registered font {name} from {path}")
        return name

    def select_fonts(self, language: LanguageOption) -> Tuple[str, str]:
        """Returns (body font, title font) for the language, registering TTFs on first use."""
        if not language.needs_tamil_font:
            return DEFAULT_FONT, DEFAULT_BOLD_FONT
        body_font = self._register_font(TAMIL_FONT, self.tamil_font_path)
        title_font = self._register_font(TAMIL_BOLD_FONT, self.tamil_bold_font_path)
        return body_font, title_font

    def wrap_lines(self, lines: Sequence[str], font_name: str, max_width: float) -> List[str]:
        wrapped: List[str] = []
        for line in lines:
            wrapped.extend(simpleSplit(line, font_name, self.body_size, max_width) or [""])
        return wrapped

    def write(self, source: Transcript, translation: Transcript, language: LanguageOption, output_path: str) -> str:
        logger.info(f"Writing PDF export: {output_path}")
        body_font, title_font = self.select_fonts(language)
        width, height = self.page_size
        max_width = width - 2 * self.margin

        try:
            pdf = self.canvas_factory(output_path, pagesize=self.page_size)
            y = height - self.margin

            pdf.setFont(title_font, self.title_size)
            for title_line in simpleSplit(translation_title(language), title_font, self.title_size, max_width):
                pdf.drawString(self.margin, y - self.title_size, title_line)
                y -= self.title_size + 4
            y -= self.leading

            pdf.setFont(body_font, self.body_size)
            pages = 1
            for line in self.wrap_lines([item.to_line() for item in translation], body_font, max_width):
                if y - self.leading < self.margin:
                    pdf.showPage()
                    pdf.setFont(body_font, self.body_size)
                    y = height - self.margin
                    pages += 1
                y -= self.leading
                pdf.drawString(self.margin, y, line)

            pdf.showPage()
            pdf.save()
        except ExportError:
            raise
        except Exception as e:
            logger.error(f"Failed to write PDF to {output_path}: {e}", exc_info=True)
            raise ExportError(f"Could not write PDF file: {e}") from e

        logger.info(f"Wrote {pages} page(s) to {output_path}")
        return output_path


def export_session(
    state: SessionState,
    output_dir: str,
    formats: Sequence[str] = ("pdf", "txt"),
    pdf_exporter: Optional[PdfExporter] = None,
    text_exporter: Optional[TextExporter] = None,
) -> List[str]:
    """
    Writes the requested exports for a finished session.

    Does nothing and returns an empty list unless both the source transcript
    and its translation are present. Transcripts are only read. A format that
    fails does not stop the others from being written.

    Args:
        state: The session to export.
        output_dir: Directory for the exported files.
        formats: Any of "pdf" and "txt".
        pdf_exporter: PDF exporter to use (defaults to one with no Tamil font configured).
        text_exporter: Text exporter to use.

    Returns:
        Paths of the written files.

    Raises:
        ExportError: If a format is unknown (nothing is written), or if any
                     format failed after the others were written.
    """
    if not state.can_export:
        logger.warning("Export skipped: both the transcript and its translation are required.")
        return []

    available = {
        "pdf": pdf_exporter or PdfExporter(),
        "txt": text_exporter or TextExporter(),
    }
    unknown = [fmt for fmt in formats if fmt not in available]
    if unknown:
        raise ExportError(f"Unsupported export format(s): {', '.join(unknown)}.")

    ensure_dir_exists(output_dir)
    base_name = derive_base_name(state.source_name, state.language)

    written = []
    failures = []
    for fmt in formats:
        exporter = available[fmt]
        path = os.path.join(output_dir, exporter.filename(base_name))
        try:
            written.append(exporter.write(state.source, state.translation, state.language, path))
        except ExportError as e:
            logger.error(f"{fmt} export failed: {e}")
            failures.append(f"{fmt}: {e}")

    if failures:
        raise ExportError(f"Export failed for {'; '.join(failures)}")
    return written
