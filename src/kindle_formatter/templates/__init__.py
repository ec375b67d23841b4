"""Per-publisher stylesheets and content transforms."""

from .css import BASE_KINDLE_CSS
from .registry import GENERIC_TYPE, TemplateRegistry, default_registry

__all__ = ["BASE_KINDLE_CSS", "GENERIC_TYPE", "TemplateRegistry", "default_registry"]
