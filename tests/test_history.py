import json

from bloomsite.agent.content import GenerationResult, PlainText
from bloomsite.agent.history import (
    decode_content,
    encode_generation,
    recover_codebase,
    recover_display,
)


def msg(role, content, mid=None):
    return {"id": mid, "role": role, "content": content, "created_at": "2025-01-01T00:00:00+00:00"}


def generation(files, description="desc", is_update=False):
    return encode_generation(GenerationResult(description=description, files=files, is_update=is_update))


def test_no_assistant_messages_means_no_codebase():
    assert recover_codebase([]) is None
    assert recover_codebase([msg("USER", "Build a todo app"), msg("USER", "again")]) is None


def test_latest_assistant_files_win():
    messages = [
        msg("USER", "one"),
        msg("ASSISTANT", generation({"a.js": "1"})),
        msg("USER", "two"),
        msg("ASSISTANT", generation({"a.js": "2", "b.js": "3"})),
    ]
    assert json.loads(recover_codebase(messages)) == {"a.js": "2", "b.js": "3"}


def test_untagged_structured_payload_is_read():
    content = json.dumps({"description": "old", "files": {"x.js": "x"}, "isUpdate": True})
    decoded = decode_content("ASSISTANT", content)
    assert decoded == GenerationResult(description="old", files={"x.js": "x"}, is_update=True)


def test_legacy_text_with_embedded_json_is_recovered():
    legacy = 'Generated your app!\n```json\n{"files": {"app/page.js": "page"}, "description": "d"}\n```'
    assert json.loads(recover_codebase([msg("ASSISTANT", legacy)])) == {"app/page.js": "page"}


def test_plain_legacy_text_is_skipped_for_older_payload():
    messages = [
        msg("ASSISTANT", generation({"a.js": "1"})),
        msg("ASSISTANT", "Generated a todo app! You can now preview and edit the code."),
    ]
    assert json.loads(recover_codebase(messages)) == {"a.js": "1"}


def test_user_content_is_never_decoded():
    content = json.dumps({"files": {"a.js": "1"}})
    assert decode_content("USER", content) == PlainText(content)
    assert recover_codebase([msg("USER", content)]) is None


def test_unknown_version_is_plain_text():
    content = json.dumps({"version": 99, "kind": "generation", "files": {"a.js": "1"}})
    assert isinstance(decode_content("ASSISTANT", content), PlainText)


def test_display_shows_descriptions_and_latest_files():
    messages = [
        msg("USER", "Build a todo app", "m1"),
        msg("ASSISTANT", generation({"a.js": "1"}, "A todo app"), "m2"),
        msg("USER", "Make it blue", "m3"),
        msg("ASSISTANT", generation({"a.js": "blue"}, "Made it blue", is_update=True), "m4"),
        msg("ASSISTANT", "plain old reply", "m5"),
    ]
    history = recover_display(messages)
    assert [m["content"] for m in history.messages] == [
        "Build a todo app",
        "A todo app",
        "Make it blue",
        "Made it blue",
        "plain old reply",
    ]
    assert [m["role"] for m in history.messages] == ["user", "assistant", "user", "assistant", "assistant"]
    assert history.messages[3]["is_update"] is True
    assert history.files == {"a.js": "blue"}


def test_display_and_prompt_agree_on_source_message():
    messages = [
        msg("ASSISTANT", generation({"a.js": "1"})),
        msg("ASSISTANT", "not json at all"),
    ]
    assert json.loads(recover_codebase(messages)) == recover_display(messages).files


def test_display_of_legacy_free_text_turn():
    raw = 'Generated your app!\n```json\n{"files": {"app/page.js": "page"}}\n```'
    history = recover_display([msg("ASSISTANT", raw)])
    assert history.messages[0]["content"] == raw
    assert history.files == {"app/page.js": "page"}

    described = 'Here you go:\n{"description": "A landing page", "files": {"app/page.js": "hero"}}'
    history = recover_display([msg("ASSISTANT", described)])
    assert history.messages[0]["content"] == "A landing page"
    assert history.files == {"app/page.js": "hero"}
