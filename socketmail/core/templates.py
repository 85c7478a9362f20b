"""HTML template rendering.

Templates use ``{{ $name }}`` placeholders (whitespace inside the braces is
optional). Unknown names and ``None`` values render as empty strings.
"""

import re
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from socketmail.utils.errors import FileSystemError
from socketmail.utils.logging import get_logger

logger = get_logger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*\$([^}\s]+)\s*\}\}")


def render(template: str, variables: Optional[Mapping[str, Any]] = None) -> str:
    """Substitute every placeholder in ``template`` from ``variables``."""
    variables = variables or {}

    def _replace(match: re.Match) -> str:
        value = variables.get(match.group(1))
        return "" if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def load_template(
    path: Union[str, Path], variables: Optional[Mapping[str, Any]] = None
) -> str:
    """Read a UTF-8 template file and render it.

    Raises:
        FileSystemError: If the template cannot be read
    """
    template_path = Path(path)

    try:
        template = template_path.read_text(encoding="utf-8")
    except OSError as e:
        raise FileSystemError(
            f"Failed to read template: {template_path}",
            details={"path": str(template_path)},
        ) from e

    logger.debug(f"Rendering template {template_path.name}")
    return render(template, variables)
