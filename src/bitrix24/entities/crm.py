"""
CRM entity services.

Deals, contacts, companies, leads, products, product sections, catalogs,
product rows and activities.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from bitrix24.core.batch import chunked, require_identifier
from bitrix24.entities.base import (
    AddMixin,
    CrudService,
    EntityService,
    FetchMixin,
    FileContent,
    ListMixin,
    encode_file_content,
)

WITH_CONTACTS = "CONTACTS"
WITH_COMPANIES = "COMPANIES"
WITH_PRODUCTS = "PRODUCTS"


class _ProductRowsMixin:
    """Product rows attached to a deal or lead."""

    def get_product_rows(self, entity_id: Any) -> List[Dict[str, Any]]:
        """Return the product rows of an entity."""
        return self.api.request(self.action("productrows.get"), {"id": entity_id})

    def set_product_rows(self, entity_id: Any, rows: Sequence[Mapping[str, Any]]) -> Any:
        """Replace the product rows of an entity (an empty list removes all rows)."""
        return self.api.request(
            self.action("productrows.set"),
            {"id": entity_id, "rows": [dict(row) for row in rows]},
        )


class DealService(_ProductRowsMixin, CrudService):
    """
    Deals (``crm.deal.*``).

    Bulk add and update accept a ``PRODUCTS`` list per deal. Deals are
    processed one batch-sized chunk at a time: the chunk's deals are written,
    then the product rows of that chunk are set, before the next chunk starts.
    """

    prefix = "crm.deal"
    label = "DEAL"
    relations = {
        WITH_PRODUCTS: "crm.deal.productrows.get",
        WITH_CONTACTS: "crm.deal.contact.items.get",
    }

    def get_contact_items(self, deal_id: Any) -> List[Dict[str, Any]]:
        """Return the contacts bound to a deal."""
        return self.api.request(self.action("contact.items.get"), {"id": deal_id})

    def set_contact_items(self, deal_id: Any, contacts: Sequence[Mapping[str, Any]]) -> Any:
        """Replace the contacts bound to a deal."""
        return self.api.request(
            self.action("contact.items.set"),
            {"id": deal_id, "items": [dict(contact) for contact in contacts]},
        )

    def add_many(
        self,
        items: Sequence[Mapping[str, Any]],
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[Any]:
        """Add deals in batches, setting non-empty ``PRODUCTS`` rows after each batch."""
        deal_ids: List[Any] = []
        for chunk in chunked(list(items), self.api.batch_size):
            chunk_ids = super().add_many([_without_products(item) for item in chunk], params)
            self._bulk_set_rows([
                (deal_id, list(item[WITH_PRODUCTS]))
                for deal_id, item in zip(chunk_ids, chunk)
                if isinstance(item.get(WITH_PRODUCTS), (list, tuple)) and item[WITH_PRODUCTS]
            ])
            deal_ids.extend(chunk_ids)
        return deal_ids

    def update_many(
        self,
        items: Sequence[Mapping[str, Any]],
        params: Optional[Mapping[str, Any]] = None,
    ) -> List[Any]:
        """
        Update deals in batches.

        A ``PRODUCTS`` list replaces the deal's product rows; an empty list
        removes them. Deals without the key keep their rows. Rows of a chunk
        are set right after the chunk's deals are updated.
        """
        validate = require_identifier("ID")
        deal_ids: List[Any] = []
        offset = 0
        for chunk in chunked(list(items), self.api.batch_size):
            for position, item in enumerate(chunk):
                validate(offset + position, item)
            deal_ids.extend(super().update_many([_without_products(item) for item in chunk], params))
            self._bulk_set_rows([
                (item["ID"], list(item[WITH_PRODUCTS]))
                for item in chunk
                if isinstance(item.get(WITH_PRODUCTS), (list, tuple))
            ])
            offset += len(chunk)
        return deal_ids

    def set_file(
        self,
        deal_id: Any,
        field_id: str,
        file_name: str,
        content: FileContent,
        is_base64: bool = True,
    ) -> Any:
        """Set the file of a single-value file user field."""
        fields = {field_id: {"fileData": [file_name, encode_file_content(content, is_base64)]}}
        return self.update(deal_id, fields)

    def set_files(
        self,
        deal_id: Any,
        field_id: str,
        files: Sequence[Tuple[str, FileContent]] = (),
        is_base64: bool = True,
    ) -> Any:
        """Replace the files of a multiple file user field (no files clears it)."""
        value: Any = [
            {"fileData": [name, encode_file_content(content, is_base64)]}
            for name, content in files
        ]
        if not value:
            value = ""
        return self.update(deal_id, {field_id: value})

    def _bulk_set_rows(self, rows: Sequence[Tuple[Any, List[Any]]]) -> None:
        if not rows:
            return
        self.api.bulk(
            self.action("productrows.set"),
            rows,
            lambda entry: {"id": entry[0], "rows": entry[1]},
        )


def _without_products(item: Mapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in item.items() if key != WITH_PRODUCTS}


class ContactService(CrudService):
    """Contacts (``crm.contact.*``)."""

    prefix = "crm.contact"
    label = "CONTACT"
    relations = {WITH_COMPANIES: "crm.contact.company.items.get"}

    def find_by_phone(self, phone: Any, select: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        """Return the first page of contacts matching a phone number."""
        return self.api.request(
            self.action("list"),
            {"filter": {"PHONE": phone}, "select": list(select or [])},
        )

    def get_company_items(self, contact_id: Any) -> List[Dict[str, Any]]:
        """Return the companies bound to a contact."""
        return self.api.request(self.action("company.items.get"), {"id": contact_id})

    def set_company_items(self, contact_id: Any, companies: Sequence[Mapping[str, Any]]) -> Any:
        """Replace the companies bound to a contact."""
        return self.api.request(
            self.action("company.items.set"),
            {"id": contact_id, "items": [dict(company) for company in companies]},
        )


class CompanyService(CrudService):
    """Companies (``crm.company.*``)."""

    prefix = "crm.company"
    label = "COMPANY"
    relations = {WITH_CONTACTS: "crm.company.contact.items.get"}

    def get_contact_items(self, company_id: Any) -> List[Dict[str, Any]]:
        """Return the contacts bound to a company."""
        return self.api.request(self.action("contact.items.get"), {"id": company_id})

    def set_contact_items(self, company_id: Any, contacts: Sequence[Mapping[str, Any]]) -> Any:
        """Replace the contacts bound to a company."""
        return self.api.request(
            self.action("contact.items.set"),
            {"id": company_id, "items": [dict(contact) for contact in contacts]},
        )


class LeadService(_ProductRowsMixin, CrudService):
    """Leads (``crm.lead.*``)."""

    prefix = "crm.lead"
    label = "LEAD"
    relations = {WITH_PRODUCTS: "crm.lead.productrows.get"}


class ProductService(CrudService):
    """Products (``crm.product.*``)."""

    prefix = "crm.product"
    label = "PRODUCT"
    accepts_params = False


class ProductSectionService(CrudService):
    """Product sections (``crm.productsection.*``)."""

    prefix = "crm.productsection"
    label = "PRODUCTSECTION"
    accepts_params = False


class CatalogService(FetchMixin, ListMixin, EntityService):
    """Product catalogs (``crm.catalog.*``); read-only."""

    prefix = "crm.catalog"
    label = "CATALOG"


class ProductRowService(EntityService):
    """Product row field descriptions (``crm.productrow.fields``)."""

    prefix = "crm.productrow"
    label = "PRODUCTROW"


class ActivityService(AddMixin, EntityService):
    """Activities (``crm.activity.*``): retrieval and creation."""

    prefix = "crm.activity"
    label = "ACTIVITY"
    accepts_params = False
