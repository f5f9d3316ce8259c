"""
Path templating for captured URLs.

Converts concrete URL paths into OpenAPI path templates by replacing
variable segments with named placeholders:

    /users/42/orders/7                          → /users/{id}/orders/{id2}
    /files/550e8400-e29b-41d4-a716-446655440000 → /files/{uuid}
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, List

from ..common.url_utils import parse_url


logger = logging.getLogger("tracespec.openapi")

NUMERIC_SEGMENT = re.compile(r'^\d+$')
UUID_SEGMENT = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$',
    re.IGNORECASE
)


@dataclass(frozen=True)
class PathParameter:
    """A path parameter detected in one concrete URL."""
    name: str
    type: str  # integer or string
    example: Any
    format: str = ''


@dataclass(frozen=True)
class PathTemplate:
    """Result of templating one URL."""
    template: str
    parameters: List[PathParameter] = field(default_factory=list)
    parsed: bool = True  # False when the URL could not be parsed


class PathTemplater:
    """
    Derives path templates and path-parameter metadata from URLs.

    Structurally identical paths always yield the same template and the
    same parameter names in the same order. The first placeholder of a
    kind keeps the bare name, later ones get a numeric suffix (id, id2,
    id3, ...).
    """

    def __init__(self, parameterize: bool = True):
        """
        Args:
            parameterize: If False, the raw path is used as the template
        """
        self.parameterize = parameterize

    def template(self, url: str) -> PathTemplate:
        """
        Template a single absolute URL.

        Unparseable URLs fall back to the raw string with no parameters.
        """
        parts = parse_url(url)
        if parts is None:
            logger.debug(f"Unparseable URL, using raw string as template: {url!r}")
            return PathTemplate(template=url, parameters=[], parsed=False)

        if not self.parameterize:
            return PathTemplate(template=parts.path)

        return self.template_path(parts.path)

    def template_path(self, path: str) -> PathTemplate:
        """Template a URL path (no scheme or host)."""
        counts = {'id': 0, 'uuid': 0}
        parameters: List[PathParameter] = []
        segments = []

        for segment in path.split('/'):
            if not segment:
                segments.append(segment)
                continue

            if NUMERIC_SEGMENT.match(segment):
                kind, param_type, example, fmt = 'id', 'integer', int(segment), ''
            elif UUID_SEGMENT.match(segment):
                kind, param_type, example, fmt = 'uuid', 'string', segment, 'uuid'
            else:
                segments.append(segment)
                continue

            counts[kind] += 1
            name = kind if counts[kind] == 1 else f"{kind}{counts[kind]}"
            parameters.append(PathParameter(name=name, type=param_type, example=example, format=fmt))
            segments.append(f"{{{name}}}")

        template = '/'.join(segments) or '/'
        return PathTemplate(template=template, parameters=parameters)
