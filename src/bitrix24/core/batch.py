"""
Batch executor.

Submits compiled command sets as single ``batch`` calls and provides the
generic chunk / compile / execute / count-check / aggregate primitive every
bulk entity operation is built on.

Bulk results are matched to input items by position. This relies on the
remote batch method returning one result per command in submission order.
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import structlog

from bitrix24.core.commands import build_command
from bitrix24.core.dispatcher import Dispatcher
from bitrix24.core.encoding import to_json
from bitrix24.core.exceptions import (
    BatchError,
    CountMismatchError,
    IdentifierMissingError,
    RelationNotFoundError,
)

logger = structlog.get_logger(__name__)

Commands = Union[Sequence[str], Mapping[str, str]]
ParamsBuilder = Callable[[Any], Mapping[str, Any]]
ItemValidator = Callable[[int, Any], None]


def chunked(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    """Split a sequence into consecutive chunks of at most ``size`` items."""
    if size < 1:
        raise ValueError("Chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def ordered_results(results: Any, labels: Sequence[str]) -> List[Any]:
    """
    Normalize a batch ``result`` into a list ordered like the submitted commands.

    The server answers list-indexed commands with either a JSON array or an
    object keyed by the stringified index.
    """
    if isinstance(results, list):
        return list(results)
    if isinstance(results, Mapping):
        ordered = [results[label] for label in labels if label in results]
        # Keys outside the submitted labels still count towards the total
        ordered.extend(value for key, value in results.items() if key not in labels)
        return ordered
    return []


def create_result_with(result: Mapping[str, Any], base: str, with_: Iterable[str]) -> Dict[str, Any]:
    """
    Merge a primary entity with its related sub-resources.

    Args:
        result: Batch result keyed by label
        base: Label of the primary entity
        with_: Labels of the requested relations

    Returns:
        The primary entity's fields plus one key per relation

    Raises:
        RelationNotFoundError: If the base or a relation label is absent
    """
    if base not in result:
        raise RelationNotFoundError(base)
    merged = dict(result[base])
    for name in with_:
        if name not in result:
            raise RelationNotFoundError(name)
        merged[name] = result[name]
    return merged


def require_identifier(field: str = "ID") -> ItemValidator:
    """
    Build a validator failing on items without a non-empty identifier.

    The raised error names the item's position in the caller's input.
    """
    def validate(index: int, item: Any) -> None:
        value = item.get(field) if isinstance(item, Mapping) else None
        if value in (None, "", 0, "0"):
            raise IdentifierMissingError(
                f"The '{field}' field of item {index} is missing or empty: '{to_json(item)}'",
                index=index,
                field=field,
                item_json=to_json(item),
            )
    return validate


class BatchExecutor:
    """
    Runs batch calls through a dispatcher.

    Attributes:
        dispatcher: Dispatcher performing the physical exchange
        batch_size: Maximum number of commands per batch call
    """

    def __init__(self, dispatcher: Dispatcher, batch_size: int = 50):
        if batch_size < 1:
            raise ValueError("Batch size must be at least 1")
        self.dispatcher = dispatcher
        self.batch_size = batch_size

    def batch_request(self, commands: Commands, halt: bool = True) -> Any:
        """
        Send a command set as one batch call.

        Args:
            commands: Command strings, as a list or keyed by label
            halt: Whether the server should stop at the first failing command

        Returns:
            The per-command ``result`` collection, unmodified

        Raises:
            BatchError: If any command reported an error
        """
        payload = {
            "halt": 1 if halt else 0,
            "cmd": dict(commands) if isinstance(commands, Mapping) else list(commands),
        }
        call = self.dispatcher.call("batch", payload)
        result = call.result if isinstance(call.result, Mapping) else {}

        errors = result.get("result_error")
        if errors:
            logger.error(
                "batch_failed",
                commands=len(payload["cmd"]),
                failed=len(errors),
            )
            raise BatchError(
                f"Error during batch request ({to_json(payload['cmd'])}): {to_json(call.raw)}",
                errors=errors,
                commands_json=to_json(payload["cmd"]),
                response_json=to_json(call.raw),
            )

        logger.debug("batch_executed", commands=len(payload["cmd"]))
        return result.get("result")

    def bulk(
        self,
        action: str,
        items: Sequence[Any],
        build_params: ParamsBuilder,
        validate: Optional[ItemValidator] = None,
        halt: bool = True,
    ) -> List[Any]:
        """
        Apply one action to many items through chunked batch calls.

        Each chunk of at most ``batch_size`` items is validated, compiled to one
        command per item and executed. Per-chunk results are concatenated in
        chunk order with item order preserved.

        Args:
            action: Remote method applied to every item
            items: Input items
            build_params: Turns an item into the call parameters
            validate: Called as ``validate(index, item)`` for every item of a
                chunk before that chunk is sent; raises to abort
            halt: Halt-on-error flag of each batch

        Returns:
            One result per input item

        Raises:
            CountMismatchError: If a chunk returns a different number of results
        """
        results: List[Any] = []
        offset = 0

        for chunk in chunked(list(items), self.batch_size):
            if validate is not None:
                for position, item in enumerate(chunk):
                    validate(offset + position, item)

            commands = [build_command(action, build_params(item)) for item in chunk]
            raw = self.batch_request(commands, halt)
            received = ordered_results(raw, [str(i) for i in range(len(commands))])

            if len(received) != len(commands):
                response_json = to_json(self.dispatcher.last_response)
                raise CountMismatchError(
                    f"Batch '{action}' returned {len(received)} results for "
                    f"{len(commands)} commands: {response_json}",
                    sent=len(commands),
                    received=len(received),
                    response_json=response_json,
                )

            results.extend(received)
            offset += len(chunk)

        logger.info("bulk_completed", action=action, items=len(results))
        return results
