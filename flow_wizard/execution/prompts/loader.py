"""
Jinja2 rendering for assistant copy.

Two sources share one environment: the named .jinja2 files listed in
Template (welcome text, re-prompts, help) and the inline snippets a
StepDefinition carries (messages, echoes, summary subtitles). Missing
values in inline snippets render as empty strings so a half-filled session
never breaks a turn.
"""

from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, Undefined

from .templates import Template

TEMPLATES_DIR = Path(__file__).parent / "templates"
SUFFIX = ".jinja2"


def _check_template_files():
    # Every Template constant must ship a file; checked once at import
    names = [value for key, value in vars(Template).items() if key.isupper()]
    missing = [name for name in names if not (TEMPLATES_DIR / f"{name}{SUFFIX}").is_file()]
    if missing:
        raise FileNotFoundError(f"Copy templates missing from {TEMPLATES_DIR}: {', '.join(missing)}")


_check_template_files()


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        undefined=Undefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render(template_name: str, **context) -> str:
    """
    Renders one of the named copy templates.

    Args:
        template_name: A Template constant (file name without the suffix).
        **context: Template variables.
    """
    template = _environment().get_template(f"{template_name}{SUFFIX}")
    return template.render(**context).strip()


@lru_cache(maxsize=256)
def _inline(source: str):
    return _environment().from_string(source)


def render_string(source: str, values: Mapping[str, Any]) -> str:
    """Renders an inline snippet against the session values."""
    if not source:
        return ""
    if "{" not in source:
        return source
    return _inline(source).render(**values).strip()
