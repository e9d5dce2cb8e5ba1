"""Loading and calling of user function modules."""

from __future__ import annotations

import hashlib
import importlib
import inspect
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from types import MappingProxyType, ModuleType
from typing import TYPE_CHECKING, Any

from appdom._errors import NotFoundError, UnsupportedOperationError

from ._cache import ModuleCache, ModuleCacheEntry, content_hash
from ._data_provider import DataProvider, DataProviderIntrospection, DataProviderSchema, validate_data_provider
from ._discover import get_module_data_from_path

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping, Sequence

logger = logging.getLogger(__name__)


_NAMESPACE_PREFIX = "_appdom_resources"


def _namespace(directory: Path) -> str:
    digest = hashlib.sha256(str(directory).encode()).hexdigest()[:12]
    return f"{_NAMESPACE_PREFIX}_{digest}"


def user_module_name(file_path: Path | str) -> str:
    """The ``sys.modules`` key of the user file at ``file_path``.

    User modules live in a private package per resources directory, so that
    ``csv.py`` never replaces the standard ``csv`` module and two directories
    may both hold a ``helpers.py``.
    """
    module_data = get_module_data_from_path(Path(file_path))
    return f"{_namespace(module_data.extra_sys_path)}.{module_data.module_import_str}"


def _namespace_package(directory: Path) -> str:
    name = _namespace(directory)
    if name not in sys.modules:
        package = ModuleType(name)
        package.__path__ = [str(directory)]
        package.__package__ = name
        sys.modules[name] = package
    return name


@contextmanager
def _sibling_imports(directory: Path) -> Iterator[None]:
    """Put ``directory`` on ``sys.path`` while a user module executes.

    Modules imported from it in the meantime are removed from ``sys.modules``
    afterwards; the executing module keeps its own references to them.
    """
    entry = str(directory)
    before = set(sys.modules)
    importlib.invalidate_caches()
    sys.path.insert(0, entry)
    try:
        yield
    finally:
        sys.path.remove(entry)
        for name in set(sys.modules) - before:
            file = getattr(sys.modules[name], "__file__", None)
            if file is not None and Path(file).is_relative_to(directory):
                logger.debug(f"Dropping {name} imported from {directory}")
                del sys.modules[name]


def _module_exports(module: ModuleType) -> dict[str, Any]:
    """Names listed in ``__all__``, or else the public names the module defines itself."""
    names = getattr(module, "__all__", None)
    if names is not None:
        return {name: getattr(module, name) for name in names}

    exports: dict[str, Any] = {}
    for name, value in vars(module).items():
        if name.startswith("_") or isinstance(value, ModuleType):
            continue
        if (inspect.isfunction(value) or inspect.isclass(value)) and value.__module__ != module.__name__:
            continue
        exports[name] = value
    return exports


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class FunctionRuntime:
    """Executes exported functions of Python files, re-executing a file only when its content changes.

    Each file is executed as a fresh module in a private package of its
    resources directory (see ``user_module_name``). It can import sibling
    modules of that directory while it executes, but those never stay in
    ``sys.modules`` under their bare names.

    Note:
        Two callers resolving the same changed file at the same time may both
        execute it; the last one to finish wins the cache entry. The
        resources directory is on ``sys.path`` only while a file executes.

    """

    def __init__(self, cache: ModuleCache | None = None) -> None:
        self.cache = cache if cache is not None else ModuleCache()

    def resolve_exports(self, file_path: Path | str) -> Mapping[str, Any]:
        """Exports of the file at ``file_path``.

        The file is read on every call; it is executed again only if its
        content differs from the cached version.

        Raises:
            NotFoundError: If the file does not exist.
            Exception: Whatever executing the file raises; the previous cache
                entry is kept in that case.

        """
        path = Path(file_path).resolve()
        try:
            content = path.read_bytes()
        except FileNotFoundError as e:
            msg = f"Function file not found: {path}"
            raise NotFoundError(msg) from e

        digest = content_hash(content)
        entry = self.cache.lookup(path, digest)
        if entry is not None:
            logger.debug(f"Using cached exports of {path}")
            return entry.exports

        if path in self.cache:
            logger.info(f"{path.name} changed, reloading")
        module = self._execute_module(path, content)
        exports = MappingProxyType(_module_exports(module))
        self.cache.put(ModuleCacheEntry(path=path, content_hash=digest, exports=exports))
        logger.debug(f"Loaded {len(exports)} exports from {path}: {', '.join(exports)}")
        return exports

    def _execute_module(self, path: Path, content: bytes) -> ModuleType:
        module_data = get_module_data_from_path(path)
        namespace = _namespace_package(module_data.extra_sys_path)
        name = f"{namespace}.{module_data.module_import_str}"
        module = ModuleType(name)
        module.__file__ = str(path)
        module.__package__ = f"{namespace}.{module_data.package}".rstrip(".")
        if path.stem == "__init__":
            module.__path__ = [str(path.parent)]

        code = compile(content, str(path), "exec")
        previous = sys.modules.get(name)
        sys.modules[name] = module
        try:
            with _sibling_imports(module_data.extra_sys_path):
                exec(code, module.__dict__)  # noqa: S102
        except Exception:
            logger.exception(f"Failed to execute {path}")
            if previous is None:
                del sys.modules[name]
            else:
                sys.modules[name] = previous
            raise
        return module

    def resolve_functions(self, file_path: Path | str) -> dict[str, Callable[..., Any]]:
        """The exports of ``file_path`` that can be called as functions."""
        return {
            name: value
            for name, value in self.resolve_exports(file_path).items()
            if callable(value) and not inspect.isclass(value) and not isinstance(value, DataProvider)
        }

    async def execute(self, file_path: Path | str, export_name: str, parameters: Sequence[Any] = ()) -> Any:
        """Call ``export_name`` of ``file_path`` with positional ``parameters``.

        Coroutine functions are awaited.

        Raises:
            NotFoundError: If the file has no callable export of that name.

        """
        function = self.resolve_functions(file_path).get(export_name)
        if function is None:
            msg = f'Function "{export_name}" not found'
            raise NotFoundError(msg)
        logger.debug(f"Executing {export_name} with {len(parameters)} parameters")
        return await _resolve(function(*parameters))

    def load_data_provider(self, file_path: Path | str, export_name: str) -> DataProviderSchema:
        """The validated data provider ``export_name`` of ``file_path``.

        Raises:
            NotFoundError: If there is no such export.
            SchemaValidationError: If the export is not a data provider.

        """
        exports = self.resolve_exports(file_path)
        if export_name not in exports:
            msg = f'DataProvider "{export_name}" not found'
            raise NotFoundError(msg)
        return validate_data_provider(exports[export_name], export_name)

    def introspect_data_provider(self, file_path: Path | str, export_name: str) -> DataProviderIntrospection:
        return DataProviderIntrospection.from_schema(self.load_data_provider(file_path, export_name))

    async def get_data_provider_records(
        self,
        file_path: Path | str,
        export_name: str,
        params: Mapping[str, Any],
    ) -> Any:
        provider = self.load_data_provider(file_path, export_name)
        return await _resolve(provider.get_records(params))

    async def delete_data_provider_record(self, file_path: Path | str, export_name: str, record_id: Any) -> Any:
        provider = self.load_data_provider(file_path, export_name)
        if provider.delete_record is None:
            msg = "DataProvider does not support deleteRecord"
            raise UnsupportedOperationError(msg)
        return await _resolve(provider.delete_record(record_id))

    async def create_data_provider_record(
        self,
        file_path: Path | str,
        export_name: str,
        values: Mapping[str, Any],
    ) -> Any:
        provider = self.load_data_provider(file_path, export_name)
        if provider.create_record is None:
            msg = "DataProvider does not support createRecord"
            raise UnsupportedOperationError(msg)
        return await _resolve(provider.create_record(values))

    async def update_data_provider_record(
        self,
        file_path: Path | str,
        export_name: str,
        record_id: Any,
        values: Mapping[str, Any],
    ) -> Any:
        provider = self.load_data_provider(file_path, export_name)
        if provider.update_record is None:
            msg = "DataProvider does not support updateRecord"
            raise UnsupportedOperationError(msg)
        return await _resolve(provider.update_record(record_id, values))
