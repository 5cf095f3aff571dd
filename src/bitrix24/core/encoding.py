"""
Wire encoding helpers.

Bitrix24 accepts form-encoded parameters using the bracket convention for
nested structures (``fields[TITLE]=Deal``, ``rows[0][PRODUCT_ID]=7``). The same
encoding is used for POST bodies and for the commands embedded in a batch.
"""

import json
import pprint
from decimal import Decimal
from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

from bitrix24.core.exceptions import EncodingError


def _scalar(value: Any, key: str) -> Optional[str]:
    # bool is checked before int since it is an int subclass
    if value is None:
        return None
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, bytes):
        try:
            return value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"Parameter '{key}' holds non UTF-8 bytes") from e
    raise EncodingError(
        f"Parameter '{key}' has unsupported type {type(value).__name__}"
    )


def _flatten(value: Any, key: str, out: List[Tuple[str, str]]) -> None:
    if isinstance(value, Mapping):
        for sub_key, sub_value in value.items():
            _flatten(sub_value, f"{key}[{sub_key}]", out)
    elif isinstance(value, (list, tuple)):
        for index, sub_value in enumerate(value):
            _flatten(sub_value, f"{key}[{index}]", out)
    else:
        encoded = _scalar(value, key)
        if encoded is not None:
            out.append((key, encoded))


def flatten_params(params: Optional[Mapping[str, Any]]) -> List[Tuple[str, str]]:
    """
    Flatten a nested parameter mapping into ordered form fields.

    Args:
        params: Parameter mapping (values may be nested mappings/sequences)

    Returns:
        List of (key, value) pairs in insertion order

    Raises:
        EncodingError: If a value cannot be represented
    """
    if params is None:
        return []
    if not isinstance(params, Mapping):
        raise EncodingError(
            f"Parameters must be a mapping, got {type(params).__name__}"
        )

    pairs: List[Tuple[str, str]] = []
    for key, value in params.items():
        _flatten(value, str(key), pairs)
    return pairs


def encode_query(params: Optional[Mapping[str, Any]]) -> str:
    """Encode a nested parameter mapping as a URL query string."""
    return urlencode(flatten_params(params))


def to_json(data: Any, pretty: bool = False) -> str:
    """
    Serialize data for error messages and log entries.

    Falls back to a pprint dump when the data is not JSON serializable.
    """
    try:
        return json.dumps(data, ensure_ascii=False, indent=4 if pretty else None)
    except (TypeError, ValueError):
        return pprint.pformat(data)
