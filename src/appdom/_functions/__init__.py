"""Execution of user-authored server functions and data providers."""

from ._cache import ModuleCache, ModuleCacheEntry, content_hash
from ._data_provider import (
    DATA_PROVIDER_MARKER,
    DataProvider,
    DataProviderIntrospection,
    DataProviderSchema,
    PaginationMode,
    create_data_provider,
    validate_data_provider,
)
from ._discover import ModuleData, get_module_data_from_path
from ._runtime import FunctionRuntime, user_module_name

__all__ = [
    "DATA_PROVIDER_MARKER",
    "DataProvider",
    "DataProviderIntrospection",
    "DataProviderSchema",
    "FunctionRuntime",
    "ModuleCache",
    "ModuleCacheEntry",
    "ModuleData",
    "PaginationMode",
    "content_hash",
    "create_data_provider",
    "get_module_data_from_path",
    "user_module_name",
    "validate_data_provider",
]
