"""Jinja2 template loading for dashboard pages."""

from decimal import Decimal
from functools import cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).parent / "templates"


def format_currency(cents: int) -> str:
    """Format integer cents as dollars, e.g. 123456 -> "$1,234.56"."""
    return f"${Decimal(cents) / 100:,.2f}"


def amount_input(cents: int) -> str:
    """Integer cents as the text an amount input expects, e.g. 4999 -> "49.99"."""
    return str(Decimal(cents) / 100)


class TemplateLoader:
    """Loads and renders the dashboard's HTML templates."""

    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        """Initialize template loader.

        Args:
            templates_dir: Directory containing .html template files
        """
        self.templates_dir = templates_dir
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["currency"] = format_currency
        self.env.filters["amount_input"] = amount_input

    def render(self, template_name: str, **context) -> str:
        """Render a template with context variables.

        Raises:
            jinja2.TemplateNotFound: If template doesn't exist
        """
        template = self.env.get_template(template_name)
        return template.render(**context)


@cache
def get_templates() -> TemplateLoader:
    return TemplateLoader()
