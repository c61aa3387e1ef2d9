"""
Topapi Backend: Department and Category Services
==================================================

Both are admin-curated vocabularies; categories can be listed per department.
"""

from topapi.schemas.catalog import CategoryCreate, CategoryUpdate, DepartmentCreate, DepartmentUpdate
from topapi.services.inventory_service import AdminManagedService


class DepartmentService(AdminManagedService):
    table = "departments"
    label = "Department"
    not_found_message = "Department not found"
    invalid_id_message = "Invalid department ID"
    create_schema = DepartmentCreate
    update_schema = DepartmentUpdate


class CategoryService(AdminManagedService):
    table = "categories"
    label = "Category"
    not_found_message = "Category not found"
    invalid_id_message = "Invalid category ID"
    create_schema = CategoryCreate
    update_schema = CategoryUpdate
    filter_columns = ("department",)
