import logging
import re

from outreach.schemas.target import Target

logger = logging.getLogger("outreach")

# {{firstName}}, {{ industry }}, {{Company Size}}, {{company-name}} ...
PLACEHOLDER = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")


def placeholders(template: str) -> list[str]:
    """Names of the placeholders in a template, in order of appearance."""
    return [m.group(1) for m in PLACEHOLDER.finditer(template)]


def render(template: str, target: Target) -> str:
    """
    Fill every {{name}} placeholder from the target's attributes.

    One pass over the template: substituted values are never re-scanned,
    and a placeholder with no matching attribute becomes an empty string.
    """
    attributes = target.attributes()
    message = PLACEHOLDER.sub(lambda m: attributes.get(m.group(1), ""), template)
    logger.debug(f"Rendered message for {target.url} ({len(message)} chars)")
    return message


def missing_attributes(template: str, target: Target) -> list[str]:
    """Placeholders the target has no (or only an empty) value for."""
    attributes = target.attributes()
    return [name for name in placeholders(template) if not attributes.get(name)]
