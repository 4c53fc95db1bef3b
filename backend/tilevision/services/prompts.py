"""Prompt templates shipped with the package (``tilevision/prompts/*.txt``)."""

from __future__ import annotations

from pathlib import Path

PROMPTS_DIR = Path(__file__).parent.parent / "prompts"

_prompt_cache: dict[str, str] = {}


def load_prompt(name: str) -> str:
    """Load a prompt file by base name, e.g. ``load_prompt("edit_wrapper")``.

    Templates with placeholders are filled with ``str.format``; files without
    placeholders are used as-is and may contain literal braces.
    """
    if name not in _prompt_cache:
        _prompt_cache[name] = (PROMPTS_DIR / f"{name}.txt").read_text(encoding="utf-8").rstrip("\n")
    return _prompt_cache[name]
