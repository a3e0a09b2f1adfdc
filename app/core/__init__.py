"""
Core Application - Infrastructure & Base Classes

Generic, reusable base classes shared by the domain apps (authentication,
chat). No domain-specific logic lives here.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - UnauthenticatedError: Missing, invalid or expired credential (401)

API errors (import from core.exception_handler):
    - api_exception_handler: DRF EXCEPTION_HANDLER
    - failure_response: Render a failed ServiceResult

Note:
    Django models and model mixins are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import BaseApplicationError, UnauthenticatedError
