"""User service."""

from typing import Any, Dict, Mapping, Optional

from bitrix24.core.pager import OffsetPager
from bitrix24.entities.base import EntityService


class UserService(EntityService):
    """Users (``user.*``): field descriptions, lookup by ID and listing through ``user.get``."""

    prefix = "user"
    label = "USER"

    def get(self, user_id: Any) -> Optional[Dict[str, Any]]:
        """Return a user by ID, or None if there is no such user."""
        users = self.api.request(self.action("get"), {"ID": user_id})
        return users[0] if users else None

    def list(
        self,
        filter: Optional[Mapping[str, Any]] = None,
        sort: str = "",
        order: str = "ASC",
        admin_mode: bool = False,
    ) -> OffsetPager:
        """Return all users as a lazy sequence of pages."""
        return self.api.get_list(
            self.action("get"),
            {
                "FILTER": dict(filter or {}),
                "sort": sort,
                "order": order,
                "ADMIN_MODE": admin_mode,
            },
        )
