"""
Runtime resource management module.

Provides ResourceManager, which acquires resources on demand and tears them
down exactly once, in reverse order of acquisition, when closed.
"""

from .errors import (
    AcquisitionError,
    ClosedError,
    ClosingError,
    ReleaseError,
    ResourceManagerError,
    ValidationError,
)
from .resource_manager import (
    ManagerState,
    ResourceManager,
    ResourceManagerConfig,
    create_resource_manager,
)

__all__ = [
    "AcquisitionError",
    "ClosedError",
    "ClosingError",
    "ManagerState",
    "ReleaseError",
    "ResourceManager",
    "ResourceManagerConfig",
    "ResourceManagerError",
    "ValidationError",
    "create_resource_manager",
]
