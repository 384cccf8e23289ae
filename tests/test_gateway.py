"""
Model gateway tests: payload validation, error mapping and the Gemini request shape.
"""

import json
from types import SimpleNamespace

import pytest
from google.genai import types

from synctrans.exceptions import FormatError, TranscriptionError, TranslationError, ValidationError
from synctrans import gateway as gateway_module
from synctrans.gateway import GeminiGateway, parse_transcript_payload
from synctrans.models import TranscriptItem

from conftest import FakeGateway, payload


class TestParseTranscriptPayload:

    def test_valid_payload(self):
        items = parse_transcript_payload(payload([("00:00-00:05", " Hello "), ("00:05-00:10", "World")]))

        assert items == [
            TranscriptItem(timestamp="00:00-00:05", text="Hello"),
            TranscriptItem(timestamp="00:05-00:10", text="World"),
        ]

    @pytest.mark.parametrize("raw", [
        "",
        "not json",
        json.dumps({"timestamp": "00:00", "text": "Hi"}),
        json.dumps([]),
        json.dumps(["just a string"]),
        json.dumps([{"timestamp": "00:00-00:05"}]),
        json.dumps([{"timestamp": "", "text": "Hi"}]),
        json.dumps([{"timestamp": "00:00-00:05", "text": "   "}]),
        json.dumps([{"timestamp": 5, "text": "Hi"}]),
        json.dumps([{"timestamp": "00:00-00:05", "text": None}]),
    ])
    def test_invalid_payloads(self, raw):
        with pytest.raises(FormatError):
            parse_transcript_payload(raw)

    def test_schema_error_names_the_field(self):
        with pytest.raises(FormatError, match="1.text"):
            parse_transcript_payload(json.dumps([{"timestamp": "00:00", "text": "a"}, {"timestamp": "00:01"}]))


class TestModelGateway:

    def test_transcribe_returns_items(self, audio_input):
        gateway = FakeGateway(transcribe_response=payload([("00:00-00:05", "Hello")]))

        items = gateway.transcribe(audio_input)

        assert items == [TranscriptItem(timestamp="00:00-00:05", text="Hello")]
        assert len(gateway.calls("transcribe")) == 1

    def test_transcribe_schema_mismatch(self, audio_input):
        gateway = FakeGateway(transcribe_response=json.dumps({"oops": True}))

        with pytest.raises(TranscriptionError) as excinfo:
            gateway.transcribe(audio_input)

        assert isinstance(excinfo.value.__cause__, FormatError)
        assert "invalid format" in str(excinfo.value)

    def test_transport_failure_becomes_transcription_error(self, audio_input):
        gateway = FakeGateway(transcribe_response=ConnectionError("connection reset"))

        with pytest.raises(TranscriptionError, match="connection reset"):
            gateway.transcribe(audio_input)

    def test_timeout_becomes_translation_error(self, hello_world_items, spanish):
        gateway = FakeGateway(translate_response=TimeoutError())

        with pytest.raises(TranslationError, match="TimeoutError"):
            gateway.translate(hello_world_items, spanish)

    def test_translate_schema_mismatch(self, hello_world_items, spanish):
        gateway = FakeGateway(translate_response="[{\"timestamp\": \"00:00-00:05\"}]")

        with pytest.raises(TranslationError):
            gateway.translate(hello_world_items, spanish)

    def test_empty_transcript_makes_no_request(self, spanish):
        gateway = FakeGateway(translate_response=payload([("00:00", "x")]))

        with pytest.raises(ValidationError):
            gateway.translate([], spanish)

        assert gateway.prompts == []

    def test_timestamps_survive_translation(self, hello_world_items, spanish):
        def echo_timestamps(prompt):
            return payload([(item.timestamp, item.text.upper()) for item in hello_world_items])

        gateway = FakeGateway(translate_response=echo_timestamps)

        translated = gateway.translate(hello_world_items, spanish)

        assert len(translated) == len(hello_world_items)
        assert [t.timestamp for t in translated] == [s.timestamp for s in hello_world_items]

    def test_count_mismatch_is_trusted_and_logged(self, hello_world_items, spanish, caplog):
        gateway = FakeGateway(translate_response=payload([("00:00-00:10", "Hola Mundo")]))

        translated = gateway.translate(hello_world_items, spanish)

        assert translated == [TranscriptItem(timestamp="00:00-00:10", text="Hola Mundo")]
        assert "1 segments for 2 source segments" in caplog.text

    def test_changed_timestamps_are_trusted_and_logged(self, hello_world_items, spanish, caplog):
        gateway = FakeGateway(translate_response=payload([("00:00-00:04", "Hola"), ("00:04-00:10", "Mundo")]))

        translated = gateway.translate(hello_world_items, spanish)

        assert [t.timestamp for t in translated] == ["00:00-00:04", "00:04-00:10"]
        assert "Translation changed one or more timestamps." in caplog.text


class FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.requests = []

    def generate_content(self, **kwargs):
        self.requests.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


class TestGeminiGateway:

    def make_gateway(self, models):
        return GeminiGateway(api_key="test-key", model_name="gemini-test",
                             client=SimpleNamespace(models=models))

    def test_audio_is_sent_inline_with_schema(self, audio_input):
        models = FakeModels(text=payload([("00:00-00:05", "Hello")]))

        self.make_gateway(models).transcribe(audio_input)

        request = models.requests[0]
        assert request["model"] == "gemini-test"
        part, instruction = request["contents"]
        assert isinstance(part, types.Part)
        assert part.inline_data.mime_type == "audio/wav"
        assert part.inline_data.data == audio_input.data
        assert "MM:SS-MM:SS" in instruction
        assert request["config"].response_mime_type == "application/json"

    def test_text_sends_instruction_only(self, text_input):
        models = FakeModels(text=payload([("00:00.000", "Good morning everyone.")]))

        self.make_gateway(models).transcribe(text_input)

        assert len(models.requests[0]["contents"]) == 1

    def test_provider_error_is_wrapped(self, hello_world_items, spanish):
        models = FakeModels(error=RuntimeError("API key not valid"))

        with pytest.raises(TranslationError, match="API key not valid"):
            self.make_gateway(models).translate(hello_world_items, spanish)

    def test_client_is_built_with_request_timeout(self, monkeypatch):
        built = {}

        def fake_client(**kwargs):
            built.update(kwargs)
            return SimpleNamespace(models=FakeModels())

        monkeypatch.setattr(gateway_module.genai, "Client", fake_client)

        gateway = GeminiGateway(api_key="test-key", timeout_seconds=12.5)

        assert built["api_key"] == "test-key"
        assert isinstance(built["http_options"], types.HttpOptions)
        assert built["http_options"].timeout == 12500
        assert gateway.timeout_seconds == 12.5
