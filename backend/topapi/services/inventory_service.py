"""
Topapi Backend: Inventory Service
===================================

Admin-managed stock items. Any authenticated principal may read; only
admins may write.

List filters:
    search      case-insensitive substring of name
    department  exact match
    category    exact match
"""

from typing import Any, Dict

from topapi.schemas.inventory import InventoryItemCreate, InventoryItemUpdate
from topapi.services.authorization import require_admin
from topapi.services.resource_service import ResourceService
from topapi.services.token_verifier import Principal


class AdminManagedService(ResourceService):
    """Reads for any principal, writes for admins only."""

    records_creator = True

    def authorize_create(self, principal: Principal, values: Dict[str, Any]) -> None:
        require_admin(principal)

    def authorize_update(self, principal: Principal, record_id: str, values: Dict[str, Any]) -> None:
        require_admin(principal)

    def authorize_delete(self, principal: Principal, record_id: str) -> None:
        require_admin(principal)


class InventoryService(AdminManagedService):
    table = "inventory_items"
    label = "Inventory item"
    not_found_message = "Inventory item not found"
    invalid_id_message = "Invalid item ID"
    create_schema = InventoryItemCreate
    update_schema = InventoryItemUpdate
    filter_columns = ("department", "category")
    search_column = "name"
    has_updated_at = True
