import json
import os

import pytest

from synctrans.gateway import ModelGateway
from synctrans.languages import get_language
from synctrans.models import AudioInput, TextInput, TranscriptItem


def payload(items):
    """Serializes (timestamp, text) pairs the way the model answers."""
    return json.dumps([{"timestamp": ts, "text": text} for ts, text in items])


class FakeGateway(ModelGateway):
    """Answers from canned responses and records every prompt it receives."""

    def __init__(self, transcribe_response=None, translate_response=None):
        self.responses = {
            "transcribe": transcribe_response,
            "translate": translate_response,
        }
        self.prompts = []

    def calls(self, operation):
        return [p for p in self.prompts if p.metadata.get("operation") == operation]

    def _generate(self, prompt):
        self.prompts.append(prompt)
        response = self.responses[prompt.metadata["operation"]]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(prompt)
        return response


@pytest.fixture
def hello_world_items():
    return [
        TranscriptItem(timestamp="00:00-00:05", text="Hello"),
        TranscriptItem(timestamp="00:05-00:10", text="World"),
    ]


@pytest.fixture
def spanish_items():
    return [
        TranscriptItem(timestamp="00:00-00:05", text="Hola"),
        TranscriptItem(timestamp="00:05-00:10", text="Mundo"),
    ]


@pytest.fixture
def audio_input():
    return AudioInput(data=b"RIFF....WAVEfmt ", mime_type="audio/wav", filename="clip.wav")


@pytest.fixture
def text_input():
    return TextInput(text="Good morning everyone. Today we review the budget. Then we plan the launch.")


@pytest.fixture
def spanish():
    return get_language("Spanish")


@pytest.fixture
def tamil_script():
    return get_language("Tamil (Script)")


@pytest.fixture
def vera_fonts():
    """TTFs bundled with reportlab, standing in for the Tamil font files."""
    import reportlab
    font_dir = os.path.join(os.path.dirname(reportlab.__file__), "fonts")
    regular = os.path.join(font_dir, "Vera.ttf")
    bold = os.path.join(font_dir, "VeraBd.ttf")
    if not (os.path.isfile(regular) and os.path.isfile(bold)):
        pytest.skip("reportlab's bundled Vera fonts are not available")
    return regular, bold
