"""
Core — Shared Constants

@file core/constants.py
"""

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 200

AUDIT_ACTION_CREATE = 'CREATE'
AUDIT_ACTION_UPDATE = 'UPDATE'
AUDIT_ACTION_DELETE = 'DELETE'
AUDIT_ACTION_STATUS_CHANGE = 'STATUS_CHANGE'

LOGGER_NAME = 'medistock'
