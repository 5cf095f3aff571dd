"""
Main Bitrix24 client.

Wires configuration, transport, dispatcher, batch executor and the entity
services together.
"""

from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

import structlog

from bitrix24.config import Bitrix24Config, get_config
from bitrix24.core.batch import BatchExecutor, Commands, ItemValidator
from bitrix24.core.call import CallResult
from bitrix24.core.commands import build_command, build_commands
from bitrix24.core.dispatcher import Dispatcher
from bitrix24.core.exceptions import ConfigurationError
from bitrix24.core.pager import IdCursorPager, OffsetPager
from bitrix24.entities import (
    WITH_COMPANIES,
    WITH_CONTACTS,
    WITH_PRODUCTS,
    ActivityService,
    CatalogService,
    CompanyService,
    ContactService,
    DealService,
    DiskService,
    LeadService,
    ProductRowService,
    ProductSectionService,
    ProductService,
    TaskService,
    UserService,
)
from bitrix24.log import DebugLogger
from bitrix24.transport import HTTPXTransport, Transport

logger = structlog.get_logger(__name__)


class Bitrix24:
    """
    Client for the Bitrix24 REST API over an incoming webhook.
    
    Usage:
        ```python
        with Bitrix24("https://portal.bitrix24.com/rest/1/token/") as b24:
            deal = b24.deals.get(42, with_=[Bitrix24.WITH_CONTACTS])
            for page in b24.deals.fetch(filter={"STAGE_ID": "WON"}):
                ...
        ```
    
    A client instance is meant for use from one thread at a time.
    """
    
    WITH_CONTACTS = WITH_CONTACTS
    WITH_COMPANIES = WITH_COMPANIES
    WITH_PRODUCTS = WITH_PRODUCTS
    
    def __init__(
        self,
        webhook_url: Optional[str] = None,
        config: Optional[Bitrix24Config] = None,
        transport: Optional[Transport] = None,
        debug_logger: Optional[DebugLogger] = None,
    ):
        """
        Initialize the client.
        
        Args:
            webhook_url: URL of the incoming webhook (overrides the configured one)
            config: Client configuration. Uses global config if not provided.
            transport: Custom transport (an httpx transport is created if not provided)
            debug_logger: Optional receiver of request/response dumps
        """
        self.config = config or get_config()
        if webhook_url is not None:
            self.config = self.config.model_copy(
                update={"webhook_url": webhook_url.strip().rstrip("/") or None}
            )
        if not self.config.webhook_url:
            raise ConfigurationError(
                "Webhook URL is not configured (pass webhook_url or set BITRIX24_WEBHOOK_URL)"
            )
        
        self.transport = transport or HTTPXTransport(self.config)
        self.dispatcher = Dispatcher(self.config.webhook_url, self.transport, debug_logger)
        self.executor = BatchExecutor(self.dispatcher, self.config.batch_size)
        
        # Entity services
        self.deals = DealService(self)
        self.contacts = ContactService(self)
        self.companies = CompanyService(self)
        self.leads = LeadService(self)
        self.products = ProductService(self)
        self.product_sections = ProductSectionService(self)
        self.product_rows = ProductRowService(self)
        self.catalogs = CatalogService(self)
        self.activities = ActivityService(self)
        self.tasks = TaskService(self)
        self.users = UserService(self)
        self.disk = DiskService(self)
    
    @property
    def webhook_url(self) -> str:
        return self.dispatcher.webhook_url
    
    @property
    def batch_size(self) -> int:
        return self.executor.batch_size
    
    @property
    def last_response(self) -> Any:
        """Decoded body of the last exchange, for diagnostics."""
        return self.dispatcher.last_response
    
    def set_logger(self, debug_logger: Optional[DebugLogger]) -> None:
        """Attach (or detach with None) a receiver of request/response dumps."""
        if debug_logger is not None and not isinstance(debug_logger, DebugLogger):
            raise TypeError("Debug logger must provide save(message, source)")
        self.dispatcher.debug_logger = debug_logger
    
    # ------------------------------------------------------------------
    # Engine
    # ------------------------------------------------------------------
    
    def call(self, action: str, params: Optional[Mapping[str, Any]] = None) -> CallResult:
        """Perform one remote call, keeping pagination metadata."""
        return self.dispatcher.call(action, params)
    
    def request(self, action: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        """Perform one remote call and return its result."""
        return self.dispatcher.request(action, params)
    
    def batch_request(self, commands: Commands, halt: bool = True) -> Any:
        """Send a command set as one batch call."""
        return self.executor.batch_request(commands, halt)
    
    def build_command(self, action: str, params: Optional[Mapping[str, Any]] = None) -> str:
        return build_command(action, params)
    
    def build_commands(self, action: str, items: Iterable[Mapping[str, Any]]) -> List[str]:
        return build_commands(action, items)
    
    def bulk(
        self,
        action: str,
        items: Sequence[Any],
        build_params: Callable[[Any], Mapping[str, Any]],
        validate: Optional[ItemValidator] = None,
        halt: bool = True,
    ) -> List[Any]:
        """Apply one action to many items through chunked batch calls."""
        return self.executor.bulk(action, items, build_params, validate=validate, halt=halt)
    
    def get_list(
        self,
        action: str,
        params: Optional[Mapping[str, Any]] = None,
        result_key: Optional[str] = None,
    ) -> OffsetPager:
        """Lazy listing following the server's ``next`` offsets."""
        return OffsetPager(self.dispatcher, action, params, result_key=result_key)
    
    def fetch_list(
        self,
        action: str,
        params: Optional[Mapping[str, Any]] = None,
        result_key: Optional[str] = None,
        id_field: str = "ID",
    ) -> IdCursorPager:
        """Lazy listing by ascending identifier ranges."""
        return IdCursorPager(
            self.dispatcher,
            action,
            params,
            batch_size=self.batch_size,
            id_field=id_field,
            result_key=result_key,
        )
    
    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    
    def close(self) -> None:
        """Close the transport."""
        self.transport.close()
        logger.debug("bitrix24_client_closed")
    
    def __enter__(self) -> "Bitrix24":
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
