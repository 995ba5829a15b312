"""
Assistant persona and the instructions the bridge sends mid-conversation.

Personas are YAML files under bridge/personas/ (PyYAML safe_load, which also
reads plain JSON). Selection: explicit name, then AGENT_PERSONA, then
"default", then the hard-coded fallback below.

Mid-conversation instructions:
- greeting: sent once when the channel opens
- results: candidate results for the assistant to summarise
- search unavailable: the search could not run; tell the user
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .commands import SENTINEL


DEFAULT_PROMPT = f"""
You are Molly, Wave's recruiting assistant.
Speak British English with a natural London accent; sound like a friendly 30-year-old woman.
Be concise, warm, and practical. No corporate jargon.
Confirm must-have skills, location, and comp band before searching.
When you need to search Bullhorn, output exactly one line of the form:
{SENTINEL} {{"job_title":"...","skills":["..."],"location":"...","seniority":"junior|mid|senior|lead","top_n":5}}
After outputting that line, wait for results before continuing.
""".strip()

DEFAULT_GREETING = "Say a brief hello and ask what role I'm hiring for."
DEFAULT_PREVIEW_TEXT = "Hello! I'm Molly from Wave."

RESULTS_DIRECTIVE = (
    "Summarise these candidates for the user in a friendly, succinct way and propose next steps. "
    "Do not read IDs aloud; use first names only."
)


def _get_personas_dir() -> Path:
    return Path(__file__).parent / "personas"


def _load_file(path: Path) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Persona file {path} must contain a mapping at top-level")
        return data


def load_persona(name: str) -> Dict[str, Any]:
    """
    Load a persona by name.

    Resolution order: <name>.yaml, <name>.yml, <name>.json, then the same for
    "default", then the built-in persona.
    """
    personas_dir = _get_personas_dir()
    for candidate_name in (name, "default"):
        for suffix in (".yaml", ".yml", ".json"):
            path = personas_dir / f"{candidate_name}{suffix}"
            if path.exists():
                return _load_file(path)

    return {
        "name": "default",
        "prompt": DEFAULT_PROMPT,
        "greeting": DEFAULT_GREETING,
        "preview_text": DEFAULT_PREVIEW_TEXT,
    }


def get_persona(name: Optional[str] = None) -> Dict[str, Any]:
    return load_persona(name or os.getenv("AGENT_PERSONA", "default"))


def get_instructions(persona: Optional[str] = None) -> str:
    """System instructions for the realtime session."""
    return get_persona(persona).get("prompt", DEFAULT_PROMPT).strip()


def get_greeting_instruction(persona: Optional[str] = None) -> str:
    return get_persona(persona).get("greeting", DEFAULT_GREETING)


def get_preview_text(persona: Optional[str] = None) -> str:
    """Default sentence for voice previews."""
    return get_persona(persona).get("preview_text", DEFAULT_PREVIEW_TEXT)


def results_instruction(payload: Dict[str, Any]) -> str:
    """Ask the assistant to summarise a result set; the raw JSON follows the directive."""
    return f"{RESULTS_DIRECTIVE}\n\nResults JSON:\n{json.dumps(payload, ensure_ascii=False)}"


def search_unavailable_instruction(message: str) -> str:
    return (
        "The candidate search could not be run. Tell the user briefly, in your own words, "
        f"and offer to try again later. Reason: {message}"
    )
