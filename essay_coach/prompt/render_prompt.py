"""Render examiner prompt templates from ``prompt/promptFiles`` with pystache.

Templates pull in shared partials (the examiner persona and the JSON output
contract). Partials may be wrapped in a code fence so they preview nicely as
markdown; the fence is stripped before rendering.

Usage:
    python -m essay_coach.prompt.render_prompt [template_filename] [context.json]
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pystache

PROMPTS_DIR = Path(__file__).parent / "promptFiles"

SYSTEM_TEMPLATE = "essay_examiner.md"
USER_TEMPLATE = "user_essay_examiner.md"

DEFAULT_PARTIALS = ["examiner_role", "essay_examiner_output_format"]

# Templates not listed here fall back to DEFAULT_PARTIALS
TEMPLATE_PARTIALS: dict[str, list[str]] = {
    SYSTEM_TEMPLATE: ["examiner_role", "essay_examiner_output_format"],
    USER_TEMPLATE: [],
}


def _read_prompt(name: str) -> str:
    p = PROMPTS_DIR / name
    if not p.exists():
        raise FileNotFoundError(f"Prompt file not found: {p}")
    return p.read_text(encoding="utf-8")


def _strip_code_fences(s: str) -> str:
    """Strip a single leading and trailing code-fence line if present.

    Handles fences like ``` or ```` optionally followed by a language tag.
    """
    lines = s.splitlines()
    if not lines:
        return s
    if lines[0].lstrip().startswith("```"):
        lines = lines[1:]
    if lines and lines[-1].lstrip().startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def _renderer(template_names: list[str]) -> pystache.Renderer:
    partial_names: set[str] = set()
    for name in template_names:
        partial_names.update(TEMPLATE_PARTIALS.get(name, DEFAULT_PARTIALS))

    partials = {
        name: _strip_code_fences(_read_prompt(f"{name}.md")) for name in partial_names
    }
    # Essays are plain text; HTML escaping would corrupt quotes and ampersands
    return pystache.Renderer(partials=partials, escape=lambda u: u)


def render_template(template_name: str = SYSTEM_TEMPLATE, context: dict | None = None) -> str:
    renderer = _renderer([template_name])
    return renderer.render(_read_prompt(template_name), context or {}).strip()


def render_prompts(
    system_template: str = SYSTEM_TEMPLATE,
    user_template: str = USER_TEMPLATE,
    context: dict | None = None,
) -> tuple[str, str]:
    """Render a ``(system_prompt, user_prompt)`` pair sharing one partial set."""
    renderer = _renderer([system_template, user_template])
    rendered_system = renderer.render(_read_prompt(system_template), context or {})
    rendered_user = renderer.render(_read_prompt(user_template), context or {})
    return rendered_system.strip(), rendered_user.strip()


def _load_context(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


if __name__ == "__main__":
    tpl = sys.argv[1] if len(sys.argv) > 1 else SYSTEM_TEMPLATE
    ctx = _load_context(sys.argv[2]) if len(sys.argv) > 2 else None
    print(render_template(tpl, ctx))
