"""
Tests for assistant personas and bridge instructions.
"""
import json
from pathlib import Path

from bridge.commands import SENTINEL
from bridge.instructions import (
    DEFAULT_GREETING,
    RESULTS_DIRECTIVE,
    get_greeting_instruction,
    get_instructions,
    get_persona,
    get_preview_text,
    load_persona,
    results_instruction,
    search_unavailable_instruction,
)


def test_default_persona_exists():
    """Test that the default persona can be loaded."""
    persona = load_persona("default")
    assert persona["name"] == "default"
    assert "prompt" in persona
    assert "greeting" in persona
    assert len(persona["greeting"]) > 0


def test_get_persona_uses_env_var(monkeypatch):
    monkeypatch.setenv("AGENT_PERSONA", "nonexistent_persona_12345")
    assert get_persona()["name"] == "default"


def test_load_persona_fallback_to_default():
    """Loading a non-existent persona falls back to default."""
    persona = load_persona("nonexistent_persona_12345")
    assert persona["name"] == "default"


def test_builtin_persona_when_no_files(monkeypatch, tmp_path):
    monkeypatch.setattr("bridge.instructions._get_personas_dir", lambda: tmp_path)
    persona = load_persona("default")
    assert persona["greeting"] == DEFAULT_GREETING
    assert SENTINEL in persona["prompt"]


def test_persona_file_can_be_json(monkeypatch, tmp_path):
    (tmp_path / "json_persona.json").write_text(
        json.dumps({"name": "json_persona", "prompt": "Be brief.", "greeting": "Hi."}),
        encoding="utf-8",
    )
    monkeypatch.setattr("bridge.instructions._get_personas_dir", lambda: tmp_path)

    assert get_instructions("json_persona") == "Be brief."
    assert get_greeting_instruction("json_persona") == "Hi."


def test_instructions_teach_the_command_line():
    instructions = get_instructions()
    assert f'{SENTINEL} {{"job_title"' in instructions
    assert "top_n" in instructions


def test_greeting_and_preview_text():
    assert len(get_greeting_instruction()) > 0
    assert len(get_preview_text()) > 0


def test_results_instruction_embeds_payload():
    payload = {"query": "isDeleted:false", "results": [{"id": 1, "name": "Zoë Adams"}]}
    text = results_instruction(payload)

    directive, _, raw = text.partition("\n\nResults JSON:\n")
    assert directive == RESULTS_DIRECTIVE
    assert json.loads(raw) == payload
    assert "Zoë" in raw


def test_search_unavailable_instruction_carries_reason():
    text = search_unavailable_instruction("I couldn't reach Bullhorn just now.")
    assert text.endswith("I couldn't reach Bullhorn just now.")


def test_persona_structure():
    """Persona files have the expected keys."""
    personas_dir = Path(__file__).parent.parent / "bridge" / "personas"

    for pattern in ("*.json", "*.yaml", "*.yml"):
        for persona_file in personas_dir.glob(pattern):
            persona = load_persona(persona_file.stem)
            assert "name" in persona
            assert "prompt" in persona
            assert "greeting" in persona
