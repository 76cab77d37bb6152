"""Jinja2 rendering for extraction prompts and candidate emails.

Files ending in ``.html.jinja2`` are autoescaped. Every other template is
rendered as plain text. A variable missing from the context is an error,
never an empty string.
"""

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape


class TemplateLoader:
    def __init__(self, templates_dir: Path) -> None:
        self.templates_dir = templates_dir
        self.env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(enabled_extensions=("html.jinja2",), default=False),
            undefined=StrictUndefined,
            keep_trailing_newline=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, **context: Any) -> str:
        return self.env.get_template(template_name).render(context)
