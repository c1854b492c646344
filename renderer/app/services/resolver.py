"""
Template resolution and required-placeholder validation.
"""

from typing import Any, List, Mapping

from renderer.app.core.errors import MissingPlaceholdersError, TemplateResolutionError
from renderer.app.schemas.config import ConfigSnapshot, Template
from renderer.app.schemas.render import RenderEnvelope
from renderer.app.utils.paths import get_value_by_path, is_blank


def resolve_template(config: ConfigSnapshot, envelope: RenderEnvelope) -> Template:
    """
    Pick the template a render request targets.

    A template_key, when given, is authoritative: the package_key is not
    consulted even if the key does not match an active template.
    """
    if envelope.template_key:
        template = config.find_template(envelope.template_key)
    else:
        package = config.find_package(envelope.package_key)
        template = (
            config.find_template(package.default_template_key)
            if package is not None
            else None
        )

    if template is None:
        raise TemplateResolutionError()
    return template


def find_missing_placeholders(template: Template, payload: Mapping[str, Any]) -> List[str]:
    return [
        path
        for path in template.required_placeholders
        if is_blank(get_value_by_path(payload, path))
    ]


def validate_placeholders(template: Template, payload: Mapping[str, Any]) -> None:
    missing = find_missing_placeholders(template, payload)
    if missing:
        raise MissingPlaceholdersError(missing)
