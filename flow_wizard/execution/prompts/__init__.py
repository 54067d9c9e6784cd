"""
Assistant copy rendered with Jinja2.
"""

from .loader import render, render_string
from .templates import Template

__all__ = [
    "Template",
    "render",
    "render_string",
]
