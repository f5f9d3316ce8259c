"""
OpenAPI document merging.

Merges two OpenAPI documents (for example one per captured domain) into
a single OpenAPI 3 document. Swagger 2.0 inputs are upgraded on the fly,
unusable inputs are ignored, and conflicts resolve in favour of the
first document.
"""

import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple


logger = logging.getLogger("tracespec.openapi")

DEFAULT_OPENAPI_VERSION = '3.0.0'
DEFAULT_INFO = {'title': 'Merged API', 'version': '1.0.0'}

COMPONENT_CATEGORIES = (
    'schemas',
    'responses',
    'parameters',
    'examples',
    'requestBodies',
    'headers',
    'securitySchemes',
    'links',
    'callbacks',
    'pathItems',
)

SWAGGER2_ONLY_FIELDS = ('swagger', 'host', 'basePath', 'schemes', 'definitions')

HTTP_METHODS = ('get', 'put', 'post', 'delete', 'options', 'head', 'patch', 'trace')

# Top-level keys rebuilt by the merge; anything else is carried over
MERGED_FIELDS = ('openapi', 'info', 'servers', 'tags', 'paths', 'components') + SWAGGER2_ONLY_FIELDS


@dataclass
class MergeResult:
    """Result of merging two documents."""
    document: Dict[str, Any]
    added: List[Tuple[str, str]] = field(default_factory=list)  # operations only in the second document
    merged: List[Tuple[str, str]] = field(default_factory=list)  # operations present in both
    warnings: List[str] = field(default_factory=list)


def is_openapi3(doc: Any) -> bool:
    """True if doc declares an OpenAPI 3.x version."""
    return isinstance(doc, dict) and isinstance(doc.get('openapi'), str) and doc['openapi'].startswith('3.')


def upgrade_to_openapi3(doc: Any) -> Optional[Dict[str, Any]]:
    """
    Lightweight upgrade of a Swagger 2.0 document to OpenAPI 3.

    servers come from schemes/host/basePath, components.schemas from
    definitions; paths, tags and info are carried over unchanged.

    Returns:
        Upgraded document, or None if doc is not a well-formed 2.0 document
    """
    if not isinstance(doc, dict):
        return None
    # Some exporters mislabel 2.0 documents as openapi: "2.0"
    marker = doc.get('swagger', doc.get('openapi'))
    if str(marker) != '2.0':
        return None
    if not isinstance(doc.get('paths', {}), dict) or not isinstance(doc.get('info', {}), dict):
        return None

    servers = []
    if doc.get('host'):
        schemes = doc.get('schemes')
        scheme = schemes[0] if isinstance(schemes, list) and schemes else 'https'
        servers.append({'url': f"{scheme}://{doc['host']}{doc.get('basePath') or ''}"})

    return {
        'openapi': DEFAULT_OPENAPI_VERSION,
        'info': doc.get('info') or {'title': 'Upgraded from 2.0', 'version': '1.0.0'},
        'servers': servers,
        'tags': doc.get('tags') or [],
        'paths': doc.get('paths') or {},
        'components': {'schemas': doc.get('definitions') or {}},
    }


def _unique(items: Iterable[Any], key: Callable[[Any], Any]) -> List[Any]:
    """First-seen deduplication by key."""
    out = []
    seen = set()
    for item in items:
        k = key(item)
        if k not in seen:
            seen.add(k)
            out.append(item)
    return out


def _server_key(server: Any) -> str:
    if isinstance(server, dict) and server.get('url'):
        return server['url']
    return json.dumps(server, sort_keys=True, default=str)


def _as_path_item(item: Any) -> Dict[str, Any]:
    return item if isinstance(item, dict) else {}


class DocumentMerger:
    """
    Merges OpenAPI documents into one OpenAPI 3 document.

    Inputs are never mutated: they are deep-copied before any part of
    them is placed into the result.

    Example:
        merger = DocumentMerger()
        combined = merger.merge(shop_doc, auth_doc)
        everything = merger.merge_all([doc_a, doc_b, doc_c])
    """

    def merge(self, doc_a: Any, doc_b: Any) -> Dict[str, Any]:
        """Merge two documents; doc_a wins every conflict."""
        return self.merge_with_report(doc_a, doc_b).document

    def merge_all(self, documents: Iterable[Any]) -> Dict[str, Any]:
        """Fold a sequence of documents left to right."""
        merged = None
        for doc in documents:
            merged = doc if merged is None else self.merge(merged, doc)
        return self.merge(merged, None)

    def merge_with_report(self, doc_a: Any, doc_b: Any) -> MergeResult:
        """
        Merge two documents and report what happened.

        Returns:
            MergeResult with the merged document, the operations added
            from doc_b, the operations merged from both and any warnings
        """
        warnings: List[str] = []
        a = self._usable(doc_a, 'first', warnings)
        b = self._usable(doc_b, 'second', warnings)

        base = a or b or {}
        result = MergeResult(document={}, warnings=warnings)

        merged: Dict[str, Any] = {
            'openapi': base.get('openapi') or DEFAULT_OPENAPI_VERSION,
            'info': (a or {}).get('info') or (b or {}).get('info') or dict(DEFAULT_INFO),
            'servers': _unique(
                list((a or {}).get('servers') or []) + list((b or {}).get('servers') or []),
                key=_server_key
            ),
            'tags': self._merge_tags((a or {}).get('tags'), (b or {}).get('tags')),
            'paths': self._merge_paths((a or {}).get('paths'), (b or {}).get('paths'), result),
            'components': self._merge_components((a or {}).get('components'), (b or {}).get('components')),
        }

        for source in (a, b):
            for key, value in (source or {}).items():
                if key not in MERGED_FIELDS and key not in merged:
                    merged[key] = value

        for key in SWAGGER2_ONLY_FIELDS:
            merged.pop(key, None)

        result.document = merged
        return result

    def _usable(self, doc: Any, label: str, warnings: List[str]) -> Optional[Dict[str, Any]]:
        """Deep copy of doc as OpenAPI 3, or None if it cannot be used."""
        if doc is None:
            return None
        if is_openapi3(doc):
            return copy.deepcopy(doc)

        upgraded = upgrade_to_openapi3(doc)
        if upgraded is not None:
            logger.info(f"Upgraded {label} document from Swagger 2.0 to OpenAPI 3")
            return copy.deepcopy(upgraded)

        message = f"The {label} document is neither OpenAPI 3.x nor Swagger 2.0 and was ignored"
        logger.warning(message)
        warnings.append(message)
        return None

    @staticmethod
    def _merge_tags(a: Optional[List[Any]], b: Optional[List[Any]]) -> List[Dict[str, Any]]:
        """Union by name; the first document's definition wins."""
        by_name: Dict[str, Dict[str, Any]] = {}
        for tag in list(a or []) + list(b or []):
            if isinstance(tag, dict) and tag.get('name') and tag['name'] not in by_name:
                by_name[tag['name']] = tag
        return list(by_name.values())

    def _merge_paths(self, a: Optional[Dict[str, Any]], b: Optional[Dict[str, Any]], result: MergeResult) -> Dict[str, Any]:
        a = a if isinstance(a, dict) else {}
        b = b if isinstance(b, dict) else {}
        # Stub entries such as "/health:" load as None
        out: Dict[str, Any] = {path: _as_path_item(item) for path, item in a.items()}

        for path, item_b in b.items():
            item_b = _as_path_item(item_b)
            if path not in out:
                out[path] = item_b
                result.added.extend((path, m) for m in item_b if m in HTTP_METHODS)
                continue

            item = dict(out[path])
            for key, value in item_b.items():
                if key not in item:
                    item[key] = value
                    if key in HTTP_METHODS:
                        result.added.append((path, key))
                elif key in HTTP_METHODS:
                    item[key] = self.merge_operations(item[key], value)
                    result.merged.append((path, key))
            out[path] = item

        return out

    @staticmethod
    def merge_operations(op_a: Dict[str, Any], op_b: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge two operations for the same (path, method).

        tags and parameters are unioned, responses are unioned by status
        code, everything else prefers op_a and falls back to op_b. If one
        side is not a mapping the other side is taken as is.
        """
        if not isinstance(op_a, dict):
            return op_b
        if not isinstance(op_b, dict):
            return op_a

        merged = dict(op_b)
        merged.update(op_a)

        tags = _unique(list(op_a.get('tags') or []) + list(op_b.get('tags') or []), key=lambda t: t)
        if tags:
            merged['tags'] = tags

        parameters = _unique(
            [p for p in list(op_a.get('parameters') or []) + list(op_b.get('parameters') or []) if p],
            key=lambda p: (p.get('in'), p.get('name')) if isinstance(p, dict) else json.dumps(p, default=str)
        )
        if parameters or 'parameters' in merged:
            merged['parameters'] = parameters

        responses = dict(op_a.get('responses') or {})
        for status, response in (op_b.get('responses') or {}).items():
            responses.setdefault(status, response)
        merged['responses'] = responses

        for key in ('summary', 'description'):
            value = op_a.get(key) or op_b.get(key)
            if value:
                merged[key] = value

        request_body = op_a.get('requestBody') or op_b.get('requestBody')
        if request_body:
            merged['requestBody'] = request_body

        return merged

    @staticmethod
    def _merge_components(a: Optional[Dict[str, Any]], b: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Union per component category by name, the first document wins."""
        a = a or {}
        b = b or {}
        out: Dict[str, Any] = {}
        for category in COMPONENT_CATEGORIES:
            entries = dict(a.get(category) or {})
            for name, value in (b.get(category) or {}).items():
                entries.setdefault(name, value)
            if entries:
                out[category] = entries
        return out
