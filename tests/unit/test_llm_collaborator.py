"""Unit tests for the LLM-backed AI collaborator.

A fake LLM records every request and replays canned replies, so these tests
never touch a model server.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Optional

import pytest

from src.annotation.models import ChatMessage, Code, Document, Quote, Segment
from src.collaborator.base_collaborator import CollaboratorError
from src.collaborator.llm_collaborator import LLMCollaborator, extract_json_list, parse_data_url
from src.libs.llm.base_llm import BaseLLM, ChatResponse, Message


class FakeLLM(BaseLLM):
    """Fake LLM for testing."""

    def __init__(self, replies: Optional[List[str]] = None, error: Optional[Exception] = None) -> None:
        self.replies = list(replies or [])
        self.error = error
        self.calls: List[dict] = []

    def chat(self, messages: List[Message], trace: Optional[Any] = None, **kwargs: Any) -> ChatResponse:
        self.validate_messages(messages)
        self.calls.append({"messages": messages, "kwargs": kwargs})
        if self.error is not None:
            raise self.error
        return ChatResponse(content=self.replies.pop(0), model="fake-model")


@pytest.fixture
def text_document(interview_text: str) -> Document:
    return Document(id="doc-1", title="Interview", type="text", content=interview_text)


@pytest.fixture
def existing_codes() -> List[Code]:
    return [Code(id="code-1", name="Positive Feedback", description="Praise", color="#86EFAC")]


def _collaborator(test_settings: Any, llm: BaseLLM, **kwargs: Any) -> LLMCollaborator:
    return LLMCollaborator(test_settings, llm=llm, **kwargs)


class TestSuggestCodes:
    def test_existing_and_new_codes(self, test_settings, text_document, existing_codes) -> None:
        reply = json.dumps([
            {"id": "code-1", "name": "Positive Feedback", "description": "Praise"},
            {"id": "new-1", "name": "Design", "description": "Visual layout"},
        ])
        llm = FakeLLM([reply])

        suggestions = _collaborator(test_settings, llm).suggest_codes(
            Segment("streamlined design", 0, 18), text_document, existing_codes
        )

        assert [(c.id, c.name, c.color) for c in suggestions] == [
            ("code-1", "Positive Feedback", "#86EFAC"),
            ("new-1", "Design", "#E2E8F0"),
        ]
        assert llm.calls[0]["kwargs"]["json_mode"] is True
        user_prompt = llm.calls[0]["messages"][-1].content
        assert '"streamlined design"' in user_prompt
        assert "Positive Feedback" in user_prompt

    def test_object_wrapped_reply_and_malformed_items(self, test_settings, text_document) -> None:
        reply = json.dumps({"codes": [{"name": "Export"}, {"description": "no name"}, "junk"]})

        suggestions = _collaborator(test_settings, FakeLLM([reply])).suggest_codes(
            Segment("export", 0, 6), text_document, []
        )

        assert len(suggestions) == 1
        assert suggestions[0].id == "new-0"
        assert suggestions[0].description == ""

    def test_long_document_is_truncated(self, test_settings, text_document) -> None:
        test_settings.annotation.context_chars = 10
        llm = FakeLLM(["[]"])

        _collaborator(test_settings, llm).suggest_codes(Segment("It", 0, 2), text_document, [])

        prompt = llm.calls[0]["messages"][-1].content
        assert text_document.content[:10] + "..." in prompt
        assert text_document.content[:11] not in prompt

    def test_unparseable_reply_raises(self, test_settings, text_document) -> None:
        with pytest.raises(CollaboratorError, match="Failed to get AI suggestions"):
            _collaborator(test_settings, FakeLLM(["no json here"])).suggest_codes(
                Segment("It", 0, 2), text_document, []
            )

    def test_transport_failure_raises(self, test_settings, text_document) -> None:
        llm = FakeLLM(error=RuntimeError("connection refused"))

        with pytest.raises(CollaboratorError, match="check the model configuration"):
            _collaborator(test_settings, llm).suggest_codes(Segment("It", 0, 2), text_document, [])


class TestDetectThemes:
    def test_themes_are_parsed(self, test_settings, text_document, existing_codes) -> None:
        reply = json.dumps({
            "themes": [
                {"code": {"name": "Usability", "description": "Ease of use"}, "quotes": ["streamlined design"]},
                {"code": {"name": ""}, "quotes": []},
                {"quotes": ["orphan"]},
            ]
        })
        llm = FakeLLM([reply])

        themes = _collaborator(test_settings, llm).detect_themes(text_document, existing_codes)

        assert len(themes) == 1
        assert themes[0].name == "Usability"
        assert themes[0].quotes == ["streamlined design"]
        assert "Positive Feedback" in llm.calls[0]["messages"][-1].content

    def test_non_text_document_is_rejected(self, test_settings) -> None:
        image = Document(id="doc-2", title="Photo", type="image", content="data:image/png;base64,AAAA")
        llm = FakeLLM()

        with pytest.raises(CollaboratorError, match="only supported for text"):
            _collaborator(test_settings, llm).detect_themes(image, [])
        assert llm.calls == []


class TestTranscribeMedia:
    def test_payload_is_attached_to_message(self, test_settings) -> None:
        llm = FakeLLM(["  Hello there.  \n"])

        transcript = _collaborator(test_settings, llm).transcribe_media("data:audio/mpeg;base64,SGVsbG8=")

        assert transcript == "Hello there."
        user_message = llm.calls[0]["messages"][-1]
        assert user_message.images == ["SGVsbG8="]
        assert "audio/mpeg" in user_message.content

    def test_failure_raises(self, test_settings) -> None:
        llm = FakeLLM(error=RuntimeError("boom"))

        with pytest.raises(CollaboratorError, match="Failed to transcribe"):
            _collaborator(test_settings, llm).transcribe_media("data:video/mp4;base64,AAAA")


class TestAnswerQuestion:
    def test_context_and_history_are_sent(self, test_settings, text_document, existing_codes) -> None:
        llm = FakeLLM(["Two themes stand out."])
        quotes = [Quote(id="q1", document_id="doc-1", code_id="code-1", text="It", start=0, end=2)]
        history = [ChatMessage("user", "Hi"), ChatMessage("ai", "Hello")]

        answer = _collaborator(test_settings, llm).answer_question(
            "What stands out?", history, [text_document], existing_codes, quotes
        )

        assert answer == "Two themes stand out."
        system, user = llm.calls[0]["messages"]
        assert system.role == "system"
        assert "- Interview (type: text)" in user.content
        assert "1 quotes have been created" in user.content
        assert "User: Hi\nAI: Hello" in user.content
        assert user.content.endswith("NEW QUESTION: What stands out?")

    def test_failure_raises(self, test_settings) -> None:
        with pytest.raises(CollaboratorError, match="Failed to get response"):
            _collaborator(test_settings, FakeLLM(error=RuntimeError("boom"))).answer_question(
                "Why?", [], [], [], []
            )


class TestInitialization:
    def test_prompts_loaded_from_config(self, test_settings) -> None:
        collaborator = _collaborator(test_settings, FakeLLM())

        assert set(collaborator.prompts) == {
            "suggest_codes", "detect_themes", "answer_question", "transcribe_media"
        }
        assert all(collaborator.prompts.values())

    def test_missing_prompt_template_raises(self, test_settings, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="suggest_codes.txt"):
            _collaborator(test_settings, FakeLLM(), prompts_dir=tmp_path)

    def test_factory_failure_is_reported(self, test_settings) -> None:
        test_settings.llm.provider = "unknown"

        with pytest.raises(ValueError, match="Failed to initialize LLM"):
            LLMCollaborator(test_settings)


class TestHelpers:
    def test_parse_data_url(self) -> None:
        assert parse_data_url("data:video/webm;base64,AAAA") == ("video/webm", "AAAA")

    @pytest.mark.parametrize(
        "data_url",
        ["not a data url", "data:audio/mpeg;base64,", "data:image/png;base64,AAAA", ",AAAA"],
    )
    def test_parse_data_url_rejects(self, data_url: str) -> None:
        with pytest.raises(CollaboratorError):
            parse_data_url(data_url)

    def test_extract_json_list_from_fenced_reply(self) -> None:
        reply = 'Here you go:\n```json\n[{"name": "A"}]\n```'

        assert extract_json_list(reply, "codes") == [{"name": "A"}]

    def test_extract_json_list_wraps_single_object(self) -> None:
        assert extract_json_list('{"name": "A"}', "codes") == [{"name": "A"}]

    def test_extract_json_list_rejects_prose(self) -> None:
        with pytest.raises(ValueError):
            extract_json_list("I could not find anything.", "codes")
