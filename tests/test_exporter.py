"""
Exporter tests: text layout, PDF font selection and pagination, filenames.
"""

import os
import shutil

import pytest
from reportlab.pdfgen import canvas

from synctrans.exceptions import ExportError
from synctrans.exporter import (
    DEFAULT_BOLD_FONT,
    DEFAULT_FONT,
    TAMIL_BOLD_FONT,
    TAMIL_FONT,
    PdfExporter,
    TextExporter,
    derive_base_name,
    export_session,
)
from synctrans.languages import get_language
from synctrans.models import TranscriptItem
from synctrans.workflow import SessionState, Stage


class RecordingCanvas(canvas.Canvas):
    """Real reportlab canvas that also remembers fonts and page breaks."""

    def __init__(self, *args, **kwargs):
        self.fonts_used = []
        self.pages = 0
        super().__init__(*args, **kwargs)
        self.fonts_used = []

    def setFont(self, psfontname, size, leading=None):
        self.fonts_used.append(psfontname)
        super().setFont(psfontname, size, leading)

    def showPage(self):
        self.pages += 1
        super().showPage()


@pytest.fixture
def canvases():
    return []


@pytest.fixture
def recording_factory(canvases):
    def factory(*args, **kwargs):
        pdf = RecordingCanvas(*args, **kwargs)
        canvases.append(pdf)
        return pdf
    return factory


@pytest.fixture
def done_state(hello_world_items, spanish_items, spanish):
    return SessionState(
        stage=Stage.DONE,
        source=list(hello_world_items),
        translation=list(spanish_items),
        language=spanish,
        source_name="meeting notes.mp3",
    )


class TestTextExporter:

    def test_render_layout(self, hello_world_items, spanish_items, spanish):
        text = TextExporter().render(hello_world_items, spanish_items, spanish)

        assert text == (
            "Original Transcript\n\n"
            "[00:00-00:05] Hello\n"
            "[00:05-00:10] World\n\n"
            "----------------------------------------\n\n"
            "Translation (Spanish)\n\n"
            "[00:00-00:05] Hola\n"
            "[00:05-00:10] Mundo\n"
        )

    def test_write_is_utf8(self, tmp_path, hello_world_items, tamil_script):
        translation = [TranscriptItem("00:00-00:05", "வணக்கம்"), TranscriptItem("00:05-00:10", "உலகம்")]
        path = TextExporter().write(hello_world_items, translation, tamil_script, str(tmp_path / "out.txt"))

        with open(path, encoding="utf-8") as f:
            assert "[00:00-00:05] வணக்கம்" in f.read()


class TestPdfExporter:

    def test_default_fonts_for_latin_languages(self, tmp_path, recording_factory, canvases,
                                               hello_world_items, spanish_items, spanish):
        exporter = PdfExporter(canvas_factory=recording_factory)

        path = exporter.write(hello_world_items, spanish_items, spanish, str(tmp_path / "es.pdf"))

        assert os.path.getsize(path) > 0
        assert canvases[0].fonts_used[0] == DEFAULT_BOLD_FONT
        assert set(canvases[0].fonts_used[1:]) == {DEFAULT_FONT}

    def test_tamil_script_uses_embedded_font(self, tmp_path, vera_fonts, recording_factory, canvases,
                                             hello_world_items, tamil_script):
        regular, bold = vera_fonts
        translation = [TranscriptItem("00:00-00:05", "Vanakkam"), TranscriptItem("00:05-00:10", "Ulagam")]
        exporter = PdfExporter(tamil_font_path=regular, tamil_bold_font_path=bold,
                               canvas_factory=recording_factory)

        exporter.write(hello_world_items, translation, tamil_script, str(tmp_path / "ta.pdf"))

        body_font, title_font = exporter.select_fonts(tamil_script)
        assert body_font.startswith(TAMIL_FONT)
        assert title_font.startswith(TAMIL_BOLD_FONT)
        assert canvases[0].fonts_used[0] == title_font
        assert set(canvases[0].fonts_used[1:]) == {body_font}
        assert DEFAULT_FONT not in canvases[0].fonts_used

    def test_missing_tamil_font_is_an_export_error(self, tmp_path, hello_world_items, tamil_script):
        exporter = PdfExporter(tamil_font_path=str(tmp_path / "missing.ttf"))

        with pytest.raises(ExportError, match="not found"):
            exporter.write(hello_world_items, hello_world_items, tamil_script, str(tmp_path / "ta.pdf"))

    def test_each_font_path_gets_its_own_registration(self, tmp_path, vera_fonts, tamil_script):
        regular, bold = vera_fonts
        copy = tmp_path / "OtherTamil.ttf"
        shutil.copyfile(bold, copy)

        first = PdfExporter(tamil_font_path=regular, tamil_bold_font_path=bold).select_fonts(tamil_script)
        second = PdfExporter(tamil_font_path=str(copy), tamil_bold_font_path=bold).select_fonts(tamil_script)
        again = PdfExporter(tamil_font_path=regular, tamil_bold_font_path=bold).select_fonts(tamil_script)

        assert second[0] != first[0]
        assert second[1] == first[1]
        assert again == first

    def test_long_transcripts_break_pages(self, tmp_path, recording_factory, canvases, spanish):
        items = [TranscriptItem(f"{i // 60:02d}:{i % 60:02d}-{i // 60:02d}:{i % 60:02d}", f"Línea {i}")
                 for i in range(120)]
        exporter = PdfExporter(canvas_factory=recording_factory)

        exporter.write(items, items, spanish, str(tmp_path / "long.pdf"))

        # about 50 body lines fit on an A4 page
        assert canvases[0].pages == 3
        assert canvases[0].getPageNumber() == 4

    def test_long_lines_are_wrapped(self, spanish):
        exporter = PdfExporter()
        line = "[00:00-00:05] " + "palabra " * 60

        wrapped = exporter.wrap_lines([line], DEFAULT_FONT, 200)

        assert len(wrapped) > 1
        assert " ".join(wrapped).split() == line.split()


class TestExportSession:

    def test_writes_both_formats(self, tmp_path, done_state):
        written = export_session(done_state, str(tmp_path), ["pdf", "txt"])

        assert [os.path.basename(p) for p in written] == [
            "meeting notes_translation.pdf",
            "meeting notes_translation.txt",
        ]
        assert all(os.path.isfile(p) for p in written)

    def test_noop_without_translation(self, tmp_path, done_state):
        done_state.translation = None

        assert export_session(done_state, str(tmp_path / "out"), ["pdf", "txt"]) == []
        assert not os.path.exists(tmp_path / "out")

    def test_does_not_mutate_transcripts(self, tmp_path, done_state, hello_world_items, spanish_items):
        export_session(done_state, str(tmp_path), ["txt"])

        assert done_state.source == hello_world_items
        assert done_state.translation == spanish_items

    def test_unknown_format(self, tmp_path, done_state):
        with pytest.raises(ExportError, match="docx"):
            export_session(done_state, str(tmp_path / "out"), ["txt", "docx"])

        assert not os.path.exists(tmp_path / "out")

    def test_missing_tamil_font_does_not_block_text(self, tmp_path, done_state, tamil_script):
        done_state.language = tamil_script
        pdf_exporter = PdfExporter(tamil_font_path=str(tmp_path / "missing.ttf"))

        with pytest.raises(ExportError, match="pdf"):
            export_session(done_state, str(tmp_path), ["pdf", "txt"], pdf_exporter=pdf_exporter)

        assert os.path.isfile(tmp_path / "meeting notes_translation.txt")
        assert not os.path.exists(tmp_path / "meeting notes_translation.pdf")


class TestDeriveBaseName:

    def test_audio_uses_file_stem(self, spanish):
        assert derive_base_name("/tmp/uploads/interview.final.m4a", spanish) == "interview.final"

    def test_text_uses_sanitized_language(self):
        assert derive_base_name(None, get_language("Conversational Tamil")) == "conversationaltamil"
        assert derive_base_name(None, get_language("Tamil (Script)")) == "tamilscript"
