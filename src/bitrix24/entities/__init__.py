"""
Entity services.

Thin wrappers mapping typed parameters onto remote method names. All of them
call through the client's dispatcher, batch executor and pagers.
"""

from bitrix24.entities.base import (
    AddMixin,
    ChangeMixin,
    CrudService,
    EntityService,
    FetchMixin,
    ListMixin,
)
from bitrix24.entities.crm import (
    WITH_COMPANIES,
    WITH_CONTACTS,
    WITH_PRODUCTS,
    ActivityService,
    CatalogService,
    CompanyService,
    ContactService,
    DealService,
    LeadService,
    ProductRowService,
    ProductSectionService,
    ProductService,
)
from bitrix24.entities.disk import DiskService
from bitrix24.entities.tasks import TaskService
from bitrix24.entities.users import UserService

__all__ = [
    "WITH_COMPANIES",
    "WITH_CONTACTS",
    "WITH_PRODUCTS",
    "ActivityService",
    "AddMixin",
    "CatalogService",
    "ChangeMixin",
    "CompanyService",
    "ContactService",
    "CrudService",
    "DealService",
    "DiskService",
    "EntityService",
    "FetchMixin",
    "LeadService",
    "ListMixin",
    "ProductRowService",
    "ProductSectionService",
    "ProductService",
    "TaskService",
    "UserService",
]
