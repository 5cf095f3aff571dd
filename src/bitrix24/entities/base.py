"""
Generic entity services.

Entities share families of methods (fields and get, listings, creation,
modification) under an action prefix, but not every entity supports every
family remotely. ``EntityService`` holds what all of them have; the mixins add
one family each and concrete services combine only the families their remote
methods exist for.
"""

import base64
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from bitrix24.core.batch import create_result_with, require_identifier
from bitrix24.core.commands import build_command
from bitrix24.core.pager import IdCursorPager, OffsetPager

if TYPE_CHECKING:
    from bitrix24.client import Bitrix24


FileContent = Union[str, bytes]


def encode_file_content(content: FileContent, is_base64: bool) -> str:
    """Return file content as base64 text, encoding it first unless it already is."""
    if is_base64:
        return content.decode("ascii") if isinstance(content, bytes) else content
    raw = content.encode("utf-8") if isinstance(content, str) else content
    return base64.b64encode(raw).decode("ascii")


class EntityService:
    """
    Base class for entity services: field descriptions and retrieval by ID.

    Attributes:
        prefix: Action prefix (e.g. ``crm.deal``)
        label: Batch label of the primary entity in composed ``get`` calls
        relations: Relation label -> action returning that relation for an entity ID
        id_param: Name of the identifier parameter of get/update/delete
        fields_param: Name of the fields parameter of add/update
        accepts_params: Whether add/update take an extra ``params`` mapping
        list_result_key: Key nesting the items of list responses, if any
    """

    prefix: str = ""
    label: str = "ENTITY"
    relations: Dict[str, str] = {}
    id_param: str = "id"
    fields_param: str = "fields"
    accepts_params: bool = True
    list_result_key: Optional[str] = None

    def __init__(self, api: "Bitrix24"):
        self.api = api

    def action(self, name: str) -> str:
        """Full action name for a method of this entity."""
        return f"{self.prefix}.{name}"

    def fields(self) -> Dict[str, Any]:
        """Return the description of the entity fields, including custom fields."""
        return self.api.request(self.action("fields"))

    def get(self, entity_id: Any, with_: Iterable[str] = ()) -> Dict[str, Any]:
        """
        Return an entity by ID, optionally with related entities.

        Relations are fetched in the same batch call as the entity and merged
        into the result under their label (e.g. ``CONTACTS``).

        Args:
            entity_id: Entity ID
            with_: Relation labels, case-insensitive

        Returns:
            Entity fields, plus one key per requested relation
        """
        with_ = [name.upper() for name in with_]
        if not with_:
            return self.api.request(self.action("get"), {self.id_param: entity_id})

        commands = {self.label: build_command(self.action("get"), {self.id_param: entity_id})}
        for name in with_:
            relation_action = self.relations.get(name)
            if relation_action is not None:
                commands[name] = build_command(relation_action, {"id": entity_id})

        result = self.api.batch_request(commands, halt=True)
        return create_result_with(result, self.label, with_)

    def _add_params(self, fields: Mapping[str, Any], params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        call_params: Dict[str, Any] = {self.fields_param: dict(fields)}
        if self.accepts_params:
            call_params["params"] = dict(params or {})
        return call_params

    def _update_params(
        self,
        entity_id: Any,
        fields: Mapping[str, Any],
        params: Optional[Mapping[str, Any]],
    ) -> Dict[str, Any]:
        call_params = {self.id_param: entity_id}
        call_params.update(self._add_params(fields, params))
        return call_params

    def _list_params(
        self,
        filter: Optional[Mapping[str, Any]],
        select: Optional[Sequence[str]],
        order: Optional[Mapping[str, str]],
    ) -> Dict[str, Any]:
        return {
            "order": dict(order or {}),
            "filter": dict(filter or {}),
            "select": list(select or []),
        }


class ListMixin:
    """Offset-paginated ``list``."""

    def list(
        self,
        filter: Optional[Mapping[str, Any]] = None,
        select: Optional[Sequence[str]] = None,
        order: Optional[Mapping[str, str]] = None,
    ) -> OffsetPager:
        """Return all entities as a lazy sequence of pages (offset pagination)."""
        return self.api.get_list(
            self.action("list"),
            self._list_params(filter, select, order),
            result_key=self.list_result_key,
        )


class FetchMixin:
    """ID-cursor ``fetch``; ``id_field`` names the identifier in filters and items."""

    id_field: str = "ID"

    def fetch(
        self,
        filter: Optional[Mapping[str, Any]] = None,
        select: Optional[Sequence[str]] = None,
        order: Optional[Mapping[str, str]] = None,
    ) -> IdCursorPager:
        """Return all entities as a lazy sequence of pages (ID-cursor pagination)."""
        return self.api.fetch_list(
            self.action("list"),
            self._list_params(filter, select, order),
            result_key=self.list_result_key,
            id_field=self.id_field,
        )


class AddMixin:
    """Single and bulk creation."""

    def add(self, fields: Mapping[str, Any], params: Optional[Mapping[str, Any]] = None) -> Any:
        """Add an entity and return its ID."""
        return self.api.request(self.action("add"), self._add_params(fields, params))

    def add_many(
        self,
        items: Sequence[Mapping[str, Any]],
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[Any]:
        """Add entities in batches and return the results in input order."""
        return self.api.bulk(
            self.action("add"),
            items,
            lambda item: self._add_params(item, params),
        )


class ChangeMixin:
    """Single and bulk update and deletion."""

    def update(
        self,
        entity_id: Any,
        fields: Mapping[str, Any],
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Update an entity."""
        return self.api.request(self.action("update"), self._update_params(entity_id, fields, params))

    def delete(self, entity_id: Any) -> Any:
        """Delete an entity by ID."""
        return self.api.request(self.action("delete"), {self.id_param: entity_id})

    def update_many(
        self,
        items: Sequence[Mapping[str, Any]],
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[Any]:
        """
        Update entities in batches.

        Every item must carry an ``ID`` field; the IDs are taken from the
        input, in input order.

        Raises:
            IdentifierMissingError: If an item has no ID (before its chunk is sent)
        """
        self.api.bulk(
            self.action("update"),
            items,
            lambda item: self._update_params(item["ID"], item, params),
            validate=require_identifier("ID"),
        )
        return [item["ID"] for item in items]

    def delete_many(self, entity_ids: Sequence[Any]) -> List[Any]:
        """Delete entities in batches and return the deleted IDs."""
        self.api.bulk(
            self.action("delete"),
            entity_ids,
            lambda entity_id: {self.id_param: entity_id},
        )
        return list(entity_ids)


class CrudService(ChangeMixin, AddMixin, FetchMixin, ListMixin, EntityService):
    """Entity with the full set of retrieval, listing and write methods."""
