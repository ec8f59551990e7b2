# gpae/services/template_service.py
"""
Template rendering service for the GPAE booking API.

Renders the French plain-text e-mail templates under gpae/templates with
Jinja2. Needs no database session, so it is safe to use from background
tasks.
"""

from datetime import datetime
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from ..core.config import settings
from ..core.constants import BRAND_NAME
from ..core.timezone_utils import format_slot_fr
from .base import BaseService

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


class TemplateService:
    """
    Centralized template rendering service using Jinja2.

    Text templates are rendered without autoescaping; anything ending in
    .html is escaped.
    """

    def __init__(self, template_dir: Optional[Path] = None):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,  # Remove trailing newlines from blocks
            lstrip_blocks=True,  # Remove leading whitespace from blocks
            keep_trailing_newline=True,
        )
        self._register_custom_filters()

    def _register_custom_filters(self) -> None:
        """Register custom Jinja2 filters."""

        def slot_fr(value: Any) -> str:
            """Format an instant as dd/mm/YYYY HH:MM in the reference timezone."""
            if isinstance(value, str):
                return value  # Already formatted
            return format_slot_fr(value)

        self.env.filters["slot_fr"] = slot_fr

    def get_common_context(self) -> Dict[str, Any]:
        return {
            "brand_name": BRAND_NAME,
            "current_year": datetime.now().year,
            "support_email": settings.from_email,
        }

    @BaseService.measure_operation("render_template")
    def render_template(self, template_name: str, context: Optional[Dict[str, Any]] = None, **kwargs) -> str:
        """
        Render a template with the given context.

        Args:
            template_name: Path to template relative to templates directory
            context: Dictionary of template variables
            **kwargs: Additional template variables

        Returns:
            Rendered template as string

        Raises:
            TemplateNotFound: If template doesn't exist
        """
        try:
            template = self.env.get_template(template_name)
        except TemplateNotFound:
            self.logger.error(f"Template not found: {template_name}")
            raise

        full_context = self.get_common_context()
        if context:
            full_context.update(context)
        full_context.update(kwargs)
        return template.render(full_context)

