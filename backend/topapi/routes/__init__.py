# Routes package init
"""
Topapi Backend: API Routes Package
====================================

Route Inventory:
    - auth.py:          /api/auth/*           signup, login, refresh, me, logout, passwords
    - users.py:         /api/users            profiles seen from account management
    - profiles.py:      /api/profiles         profile CRUD (reads open to anonymous callers)
    - inventory.py:     /api/inventory        stock items (admin writes)
    - categories.py:    /api/categories       (admin writes)
    - departments.py:   /api/departments      (admin writes)
    - activity_log.py:  /api/activity-log     audit trail (admin delete)
    - health.py:        /api/health, /api/health/db

Routes are THIN: parse the request, call a service, wrap the result in
the success envelope. Errors propagate to the handlers in main.py.
"""
