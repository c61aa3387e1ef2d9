"""
Topapi Backend: Activity Log Service
======================================

Any authenticated principal may read and append entries. Entries are
immutable; only an admin may delete one.
"""

from typing import Any, Dict

from topapi.schemas.activity_log import ActivityLogCreate, ActivityLogFilters
from topapi.services.authorization import require_admin
from topapi.services.resource_service import ResourceService
from topapi.services.token_verifier import Principal


class ActivityLogService(ResourceService):
    table = "activity_log"
    label = "Activity log entry"
    not_found_message = "Activity log entry not found"
    invalid_id_message = "Invalid activity log ID"
    create_schema = ActivityLogCreate
    filter_schema = ActivityLogFilters
    filter_columns = ("user_id", "action")

    def prepare_create(self, values: Dict[str, Any], principal: Principal) -> Dict[str, Any]:
        # The acting principal unless the client names another user
        if not values.get("user_id"):
            values["user_id"] = principal.id
        return values

    def authorize_delete(self, principal: Principal, record_id: str) -> None:
        require_admin(principal)
