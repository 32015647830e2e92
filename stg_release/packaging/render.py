"""Bundled control and lifecycle script templates."""

from __future__ import annotations

from importlib import resources
from string import Template
from typing import Mapping


class ScriptTemplate(Template):
    """``string.Template`` using ``@@`` so shell ``$`` expansions pass through untouched."""

    delimiter = "@@"


def load_template(name: str) -> ScriptTemplate:
    resource = resources.files(__package__) / "templates" / f"{name}.in"
    return ScriptTemplate(resource.read_text(encoding="utf-8"))


def render_template(name: str, values: Mapping[str, object]) -> str:
    """Render template ``name``; raises ``KeyError`` for a missing placeholder."""

    return load_template(name).substitute({key: str(value) for key, value in values.items()})
