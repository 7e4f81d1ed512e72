"""
Custom exceptions for the catalog.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
CatalogException (base)
├── ValidationException
│   └── CycleDetectedException
├── NotFoundException
│   ├── ItemNotFoundException
│   ├── CompositionEdgeNotFoundException
│   └── MediaNotFoundException
├── ConflictException
├── QuotaExceededException
├── StorageException
├── UnauthorizedException
└── ForbiddenException

Usage:
------
Services raise specific exceptions:
    raise ItemNotFoundException(item_id=123)

The web layer translates them to status codes (see utils/error_handler.py):
    except CatalogException as e:
        status_code = http_status_for(e)
"""

from .base import CatalogException, ValidationException, NotFoundException, ConflictException
from .item import ItemNotFoundException
from .composition import CompositionEdgeNotFoundException, CycleDetectedException
from .media import MediaNotFoundException, QuotaExceededException, StorageException
from .auth import UnauthorizedException, ForbiddenException

__all__ = [
    # Base
    'CatalogException',
    'ValidationException',
    'NotFoundException',
    'ConflictException',

    # Item
    'ItemNotFoundException',

    # Composition
    'CompositionEdgeNotFoundException',
    'CycleDetectedException',

    # Media
    'MediaNotFoundException',
    'QuotaExceededException',
    'StorageException',

    # Auth
    'UnauthorizedException',
    'ForbiddenException',
]
