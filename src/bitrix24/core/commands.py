"""
Command compiler for batch requests.

A command is one remote call serialized as ``<action>?<query>``, the form the
``batch`` method expects for each entry of its ``cmd`` parameter.
"""

from typing import Any, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl

from bitrix24.core.encoding import encode_query


def build_command(action: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """
    Build a single batch command.

    Args:
        action: Remote method name (e.g. ``crm.deal.get``)
        params: Parameters of the call

    Returns:
        Command string

    Raises:
        EncodingError: If a parameter cannot be encoded
    """
    return f"{action}?{encode_query(params)}"


def build_commands(action: str, items: Iterable[Mapping[str, Any]]) -> List[str]:
    """Build one command per parameter set, preserving order."""
    return [build_command(action, params) for params in items]


def parse_command(command: str) -> Tuple[str, List[Tuple[str, str]]]:
    """Split a command back into its action and flattened parameters."""
    action, _, query = command.partition("?")
    return action, parse_qsl(query, keep_blank_values=True)
