"""
TraceSpec Common Utilities

Shared helpers for loading capture files and decoding payloads.
"""

import json
from pathlib import Path
from typing import List, Dict, Any, Optional

import yaml


def safe_json_parse(json_string: str, default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    Args:
        json_string: JSON string to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails

    Example:
        body = safe_json_parse(record.get("req_body"), default={})
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError):
        return default


def base_content_type(value: Optional[str], default: str = 'application/json') -> str:
    """
    Strip parameters (charset, boundary) from a content-type header value.

    Example:
        base_content_type("application/json; charset=utf-8") → "application/json"
    """
    if not value:
        return default
    base = value.split(';', 1)[0].strip().lower()
    return base or default


class CaptureLoader:
    """
    Standardized loader for capture files.

    Handles the JSON layouts written by the capture proxy and the
    browser recorder:
    - Format 1: {"requests": [...]}  (raw log format)
    - Format 2: {"captures": [...]}  (alternative wrapper)
    - Format 3: {"records": [...]}   (recorder export)
    - Format 4: [...]                (direct list format)

    Example:
        loader = CaptureLoader("captures.json")
        records = loader.load_records()

        for record in records:
            print(record.url)
    """

    WRAPPER_KEYS = ('requests', 'captures', 'records')

    def __init__(self, file_path: str):
        """
        Initialize capture loader.

        Args:
            file_path: Path to capture JSON file
        """
        self.file_path = Path(file_path)

    def load(self) -> List[Dict[str, Any]]:
        """
        Load raw capture dictionaries from the JSON file.

        Returns:
            List of capture dictionaries

        Raises:
            FileNotFoundError: If capture file doesn't exist
            ValueError: If JSON format is invalid or unrecognized
        """
        if not self.file_path.exists():
            raise FileNotFoundError(f"Capture file not found: {self.file_path}")

        with open(self.file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if isinstance(data, dict):
            for key in self.WRAPPER_KEYS:
                if key in data:
                    return data[key]
            raise ValueError(
                f"Unexpected JSON format in {self.file_path}. "
                f"Expected dict with one of {list(self.WRAPPER_KEYS)} keys, "
                f"or a list of captures. Found keys: {list(data.keys())}"
            )
        elif isinstance(data, list):
            return data
        else:
            raise ValueError(
                f"Unexpected JSON format in {self.file_path}. "
                f"Expected dict or list, got {type(data).__name__}"
            )

    def validate_capture(self, capture: Dict[str, Any]) -> bool:
        """
        Validate that a capture has required fields.

        Args:
            capture: Capture dictionary to validate

        Returns:
            True if capture has minimum required fields
        """
        if not isinstance(capture, dict):
            return False
        required_fields = ['url', 'method']
        return all(capture.get(field) for field in required_fields)

    def load_records(self) -> list:
        """
        Load captures and convert the valid ones to ExchangeRecords.

        Returns:
            List of ExchangeRecord objects
        """
        from ..openapi.records import ExchangeRecord

        captures = self.load()
        valid_captures = [c for c in captures if self.validate_capture(c)]

        if len(valid_captures) < len(captures):
            invalid_count = len(captures) - len(valid_captures)
            print(f"Warning: Skipped {invalid_count} invalid captures", flush=True)

        return [ExchangeRecord.from_dict(c, index=i) for i, c in enumerate(valid_captures)]

    @staticmethod
    def load_from_file(file_path: str) -> list:
        """
        Convenience method to load records in one call.

        Example:
            records = CaptureLoader.load_from_file("captures.json")
        """
        return CaptureLoader(file_path).load_records()


def load_structured_file(file_path: str) -> Any:
    """
    Load a JSON or YAML file.

    Files ending in .json are read as JSON, everything else with
    yaml.safe_load (which also accepts JSON).

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix.lower() == '.json':
            return json.load(f)
        return yaml.safe_load(f)
