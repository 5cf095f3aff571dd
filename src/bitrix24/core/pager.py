"""
Lazy listings.

Two pagination strategies over list methods, each exposed as a finite,
forward-only iterator of pages. A pager cannot be restarted; create a new one
to list again from the beginning.
"""

import copy
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

import structlog

from bitrix24.core.dispatcher import Dispatcher
from bitrix24.core.encoding import to_json
from bitrix24.core.exceptions import PaginationError

logger = structlog.get_logger(__name__)

Page = List[Any]


class PagerState(str, Enum):
    """State of a pager."""
    FETCHING = "fetching"
    EXHAUSTED = "exhausted"


class _Pager(Iterator[Page]):
    """Shared iteration bookkeeping."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        action: str,
        params: Optional[Mapping[str, Any]] = None,
        result_key: Optional[str] = None,
    ):
        self.dispatcher = dispatcher
        self.action = action
        # Captured at creation; later changes to the caller's dict have no effect
        self.params: Dict[str, Any] = copy.deepcopy(dict(params or {}))
        self.result_key = result_key

        self.state = PagerState.FETCHING
        self.total: Optional[int] = None
        self.pages_fetched = 0
        self.items_fetched = 0

    @property
    def exhausted(self) -> bool:
        return self.state == PagerState.EXHAUSTED

    def __iter__(self) -> "_Pager":
        return self

    def __next__(self) -> Page:
        if self.state == PagerState.EXHAUSTED:
            raise StopIteration
        return self._fetch_page()

    def _fetch_page(self) -> Page:
        raise NotImplementedError

    def _unwrap(self, result: Any) -> Page:
        if self.result_key is not None and isinstance(result, Mapping):
            result = result.get(self.result_key)
        if result is None:
            return []
        if isinstance(result, Mapping):
            return list(result.values())
        return list(result)

    def _record(self, page: Page) -> None:
        self.pages_fetched += 1
        self.items_fetched += len(page)


class OffsetPager(_Pager):
    """
    Follows the server-supplied ``next`` offset.

    Yields one page per call, including an empty last page, and stops once a
    response carries no ``next``. There is no page limit.

    Usage:
        ```python
        for page in OffsetPager(dispatcher, "crm.deal.list", {"filter": {"STAGE_ID": "NEW"}}):
            for deal in page:
                ...
        ```
    """

    def _fetch_page(self) -> Page:
        start = self.params.get("start", 0)
        call = self.dispatcher.call(self.action, self.params)
        page = self._unwrap(call.result)
        self._record(page)
        self.total = call.total

        logger.debug(
            "list_page_fetched",
            action=self.action,
            start=start,
            count=len(page),
            total=call.total,
        )
        self.dispatcher.save_debug(
            lambda: f"Listing {self.action} (start: {start}): obtained {len(page)} entities, "
            f"{call.total} in total"
        )

        if call.has_next:
            self.params["start"] = call.next
        else:
            self.state = PagerState.EXHAUSTED
        return page


class IdCursorPager(_Pager):
    """
    Lists by identifier ranges instead of offsets.

    Sorts ascending by identifier, filters ``>ID`` from the last identifier of
    the previous page and disables total counting (``start=-1``). A page
    shorter than ``batch_size`` ends the listing.

    The server must return items in ascending identifier order with the
    identifier present on every item; a missing, non-numeric or non
    increasing identifier raises PaginationError.
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        action: str,
        params: Optional[Mapping[str, Any]] = None,
        batch_size: int = 50,
        id_field: str = "ID",
        result_key: Optional[str] = None,
    ):
        super().__init__(dispatcher, action, params, result_key)
        if batch_size < 1:
            raise ValueError("Batch size must be at least 1")
        self.batch_size = batch_size
        self.id_field = id_field
        self.cursor = 0

        order = self.params.get("order") or {}
        extra_order = [key for key in order if key != id_field]
        if extra_order:
            logger.warning(
                "fetch_list_order_ignored",
                action=action,
                ignored=extra_order,
            )
        self.params["order"] = {id_field: "ASC"}
        self.params["filter"] = dict(self.params.get("filter") or {})
        self.params["filter"][f">{id_field}"] = self.cursor
        self.params["start"] = -1

    def _fetch_page(self) -> Page:
        call = self.dispatcher.call(self.action, self.params)
        page = self._unwrap(call.result)
        self._record(page)

        logger.debug(
            "fetch_page_fetched",
            action=self.action,
            count=len(page),
            received=self.items_fetched,
        )
        self.dispatcher.save_debug(
            lambda: f"Fetching {self.action}: obtained {len(page)} entities, "
            f"{self.items_fetched} received so far"
        )

        if len(page) < self.batch_size:
            self.state = PagerState.EXHAUSTED
            return page

        self.cursor = self._last_identifier(page)
        self.params["filter"][f">{self.id_field}"] = self.cursor
        return page

    def _last_identifier(self, page: Page) -> int:
        last = page[-1]
        value = last.get(self.id_field) if isinstance(last, Mapping) else None
        if value is None:
            self.state = PagerState.EXHAUSTED
            raise PaginationError(
                f"Item without '{self.id_field}' in '{self.action}' page: {to_json(last)}"
            )
        try:
            identifier = int(value)
        except (TypeError, ValueError) as e:
            self.state = PagerState.EXHAUSTED
            raise PaginationError(
                f"Non-numeric '{self.id_field}' {value!r} in '{self.action}' page"
            ) from e
        if identifier <= self.cursor:
            self.state = PagerState.EXHAUSTED
            raise PaginationError(
                f"'{self.id_field}' {identifier} does not advance past {self.cursor} "
                f"in '{self.action}'; items are not in ascending order"
            )
        return identifier
