"""
JSON-Schema inference and merging for captured payloads.

SchemaInferencer turns a single JSON value into a Schema. SchemaMerger
unifies several schemas that describe samples of the same logical value
(for example every 200 response body seen for one endpoint).

Schemas are immutable; merging always builds new Schema objects and
never touches its inputs.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple


OBJECT = 'object'
ARRAY = 'array'
STRING = 'string'
NUMBER = 'number'
INTEGER = 'integer'
BOOLEAN = 'boolean'
NULL = 'null'
ALTERNATIVES = 'alternatives'

KINDS = (OBJECT, ARRAY, STRING, NUMBER, INTEGER, BOOLEAN, NULL, ALTERNATIVES)

# String format sniffing, checked in this order
DATE_TIME_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}')
DATE_PATTERN = re.compile(r'\d{4}-\d{2}-\d{2}')
EMAIL_PATTERN = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')
URI_PATTERN = re.compile(r'https?://')

INTEGER_LITERAL = re.compile(r'[-+]?\d+')
FLOAT_LITERAL = re.compile(r'[-+]?(\d+\.\d*|\.\d+|\d+)([eE][-+]?\d+)?')


@dataclass(frozen=True)
class Schema:
    """
    Structural description of a JSON value.

    kind selects which of the other fields are meaningful:
    - object: properties (ordered) and required
    - array: items
    - string: format
    - alternatives: options (incompatible shapes seen for one slot)
    """

    kind: str
    properties: Dict[str, 'Schema'] = field(default_factory=dict)
    required: Tuple[str, ...] = ()
    items: Optional['Schema'] = None
    format: Optional[str] = None
    nullable: bool = False
    options: Tuple['Schema', ...] = ()

    def __post_init__(self):
        if self.kind not in KINDS:
            raise ValueError(f"Unknown schema kind: {self.kind!r}")
        missing = [name for name in self.required if name not in self.properties]
        if missing:
            raise ValueError(f"Required properties missing from schema: {missing}")

    def to_openapi(self, target_version: str = '3.0') -> Dict[str, Any]:
        """
        Render as an OpenAPI schema object.

        Swagger 2.0 has neither oneOf nor nullable: alternatives render as
        the first option plus an x-alternatives list, and nullable becomes
        x-nullable.
        """
        swagger2 = target_version == '2.0'

        if self.kind == ALTERNATIVES:
            rendered = [option.to_openapi(target_version) for option in self.options]
            if swagger2:
                out = dict(rendered[0]) if rendered else {'type': STRING}
                out['x-alternatives'] = rendered
                return out
            return {'oneOf': rendered}

        out: Dict[str, Any] = {} if self.kind == NULL else {'type': self.kind}

        if self.format:
            out['format'] = self.format

        if self.kind == OBJECT:
            out['properties'] = {
                name: prop.to_openapi(target_version)
                for name, prop in self.properties.items()
            }
            if self.required:
                out['required'] = list(self.required)

        if self.kind == ARRAY:
            out['items'] = self.items.to_openapi(target_version) if self.items else {'type': STRING}

        if self.nullable or self.kind == NULL:
            out['x-nullable' if swagger2 else 'nullable'] = True

        return out


class SchemaInferencer:
    """Infers a Schema from a JSON value."""

    def infer(self, value: Any) -> Schema:
        """
        Infer the schema of a JSON value.

        Rules:
        - None → nullable string
        - list → array, items inferred from the first element (string if empty)
        - dict → object, keys required unless their value is None
        - str → string with date-time/date/email/uri format sniffing
        - int/float → integer when there is no fractional part, else number
        - bool → boolean
        - anything else → string
        """
        if value is None:
            return Schema(kind=STRING, nullable=True)

        if isinstance(value, bool):
            return Schema(kind=BOOLEAN)

        if isinstance(value, (list, tuple)):
            items = self.infer(value[0]) if value else Schema(kind=STRING)
            return Schema(kind=ARRAY, items=items)

        if isinstance(value, dict):
            properties = {}
            required = []
            for key, item in value.items():
                name = str(key)
                properties[name] = self.infer(item)
                if item is not None:
                    required.append(name)
            return Schema(kind=OBJECT, properties=properties, required=tuple(required))

        if isinstance(value, str):
            return self.infer_string(value)

        if isinstance(value, int):
            return Schema(kind=INTEGER)

        if isinstance(value, float):
            if value == value and value not in (float('inf'), float('-inf')) and value.is_integer():
                return Schema(kind=INTEGER)
            return Schema(kind=NUMBER)

        return Schema(kind=STRING)

    def infer_string(self, value: str) -> Schema:
        """Infer a string schema, sniffing well-known formats."""
        if DATE_TIME_PATTERN.match(value):
            return Schema(kind=STRING, format='date-time')
        if DATE_PATTERN.fullmatch(value):
            return Schema(kind=STRING, format='date')
        if EMAIL_PATTERN.fullmatch(value):
            return Schema(kind=STRING, format='email')
        if URI_PATTERN.match(value):
            return Schema(kind=STRING, format='uri')
        return Schema(kind=STRING)

    @staticmethod
    def parse_literal(raw: str) -> Any:
        """
        Parse a raw query-string value.

        Tries integer, then float, then boolean literal; anything else is
        returned unchanged.

        Examples:
            "42" → 42, "1.5" → 1.5, "true" → True, "abc" → "abc"
        """
        text = raw.strip()
        if INTEGER_LITERAL.fullmatch(text):
            return int(text)
        if FLOAT_LITERAL.fullmatch(text):
            return float(text)
        if text in ('true', 'false'):
            return text == 'true'
        return raw

    def infer_literal(self, raw: str) -> Tuple[Any, Schema]:
        """Parse a raw string value and infer its schema."""
        value = self.parse_literal(raw)
        return value, self.infer(value)


class SchemaMerger:
    """
    Merges schemas describing samples of the same logical value.

    - one schema → returned unchanged
    - all objects → property union, each property merged recursively
    - all the same other kind → the first schema
    - mixed kinds → alternatives holding every distinct shape
    """

    def merge(self, schemas: Sequence[Schema]) -> Schema:
        """
        Merge one or more schemas into one.

        Raises:
            ValueError: If no schema is given
        """
        if not schemas:
            raise ValueError("At least one schema is required for merging")

        if len(schemas) == 1:
            return schemas[0]

        if any(s.kind == ALTERNATIVES for s in schemas):
            return self._alternatives(schemas)

        kinds = {s.kind for s in schemas}
        if len(kinds) > 1:
            return self._alternatives(schemas)

        if OBJECT in kinds:
            return self._merge_objects(schemas)

        first = schemas[0]
        if not first.nullable and any(s.nullable for s in schemas):
            return replace(first, nullable=True)
        return first

    def _merge_objects(self, schemas: Sequence[Schema]) -> Schema:
        """
        Union of properties with recursive per-property merge.

        required is the union of every sample's required set. A property
        that some sample carried as null (nullable and not required there)
        is left out of required.
        """
        samples: Dict[str, List[Schema]] = {}
        required: List[str] = []
        seen_null = set()

        for schema in schemas:
            for name, prop in schema.properties.items():
                samples.setdefault(name, []).append(prop)
                if prop.nullable and name not in schema.required:
                    seen_null.add(name)
            for name in schema.required:
                if name not in required:
                    required.append(name)

        properties = {name: self.merge(props) for name, props in samples.items()}

        return Schema(
            kind=OBJECT,
            properties=properties,
            required=tuple(name for name in required if name not in seen_null),
            nullable=any(s.nullable for s in schemas),
        )

    def _alternatives(self, schemas: Sequence[Schema]) -> Schema:
        """Collect distinct shapes in first-seen order, flattening nested alternatives."""
        distinct: List[Schema] = []
        for schema in schemas:
            options = schema.options if schema.kind == ALTERNATIVES else (schema,)
            for option in options:
                if option not in distinct:
                    distinct.append(option)

        if len(distinct) == 1:
            return distinct[0]
        return Schema(kind=ALTERNATIVES, options=tuple(distinct))

    def merge_values(self, values: Sequence[Any], inferencer: Optional[SchemaInferencer] = None) -> Schema:
        """Infer a schema for each value and merge the results."""
        inferencer = inferencer or SchemaInferencer()
        return self.merge([inferencer.infer(v) for v in values])
