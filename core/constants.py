"""
Core — Constants

Shared constants: audit actions, pagination caps, role names.

@file core/constants.py
"""

AUDIT_ACTION_CREATE = 'CREATE'
AUDIT_ACTION_UPDATE = 'UPDATE'
AUDIT_ACTION_DEACTIVATE = 'DEACTIVATE'

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 500

ROLE_ADMIN = 'ADMIN_ROLE'
ROLE_USER = 'USER_ROLE'
ROLE_TRUCK_DRIVER = 'USER_CAM'
ROLE_PRESELLER = 'USER_PREV'
