"""Read-only lookup of publisher templates."""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from types import MappingProxyType

from ..core.models import Template
from . import css, transforms

GENERIC_TYPE = "generic"


class TemplateRegistry:
    """Map newsletter types to templates; unknown types get the generic one."""

    def __init__(self, templates: Mapping[str, Template]) -> None:
        if GENERIC_TYPE not in templates:
            raise ValueError("Template registry requires a 'generic' entry")
        self._templates: Mapping[str, Template] = MappingProxyType(dict(templates))

    def get_template(self, newsletter_type: str | None) -> Template:
        """Return the template for ``newsletter_type`` or the generic template."""
        if newsletter_type and newsletter_type in self._templates:
            return self._templates[newsletter_type]
        return self._templates[GENERIC_TYPE]

    @property
    def types(self) -> tuple[str, ...]:
        """Registered newsletter types."""
        return tuple(self._templates)

    def __contains__(self, newsletter_type: object) -> bool:
        return newsletter_type in self._templates


@lru_cache(maxsize=1)
def default_registry() -> TemplateRegistry:
    """Return the process-wide registry of built-in templates."""
    return TemplateRegistry(
        {
            "stratechery": Template(css.STRATECHERY_CSS, transforms.stratechery_transform),
            "substack": Template(css.SUBSTACK_CSS, transforms.substack_transform),
            "axios": Template(css.AXIOS_CSS, transforms.axios_transform),
            "bulletinmedia": Template(
                css.BULLETINMEDIA_CSS, transforms.bulletinmedia_transform
            ),
            "onetech": Template(css.ONETECH_CSS, transforms.onetech_transform),
            "jeffselingo": Template(
                css.JEFFSELINGO_CSS, transforms.jeffselingo_transform
            ),
            GENERIC_TYPE: Template(css.GENERIC_CSS, transforms.generic_transform),
        }
    )


__all__ = ["GENERIC_TYPE", "TemplateRegistry", "default_registry"]
