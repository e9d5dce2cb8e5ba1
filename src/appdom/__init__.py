"""Runtime core of a visual application builder."""

__all__ = [
    "CURRENT_VERSION",
    "LOADING",
    "UNDEFINED",
    "AppDomError",
    "BindableAttrValue",
    "ConstValue",
    "DataProvider",
    "DataProviderIntrospection",
    "DataProviderSchema",
    "DependencyGraph",
    "Document",
    "DocumentIntegrityError",
    "EnvValue",
    "EvaluationError",
    "ExpressionSyntaxError",
    "ExpressionValue",
    "Failed",
    "FunctionRuntime",
    "JsRuntime",
    "LiveBinding",
    "Loading",
    "LoadingSignal",
    "MigrationVersionError",
    "Node",
    "NodeRefValue",
    "NodeType",
    "NotFoundError",
    "PageEvaluation",
    "PageScope",
    "Ready",
    "SchemaValidationError",
    "ScopeBuilder",
    "UnsupportedOperationError",
    "create_data_provider",
    "dumps_document",
    "env_value",
    "evaluate_bindings",
    "evaluate_page",
    "fetch_page_queries",
    "generate_key_between",
    "load_document",
    "loads_document",
    "migrate_up",
    "save_document",
]

from ._bindings import evaluate_bindings
from ._dom import (
    CURRENT_VERSION,
    BindableAttrValue,
    ConstValue,
    Document,
    EnvValue,
    ExpressionValue,
    Node,
    NodeRefValue,
    NodeType,
)
from ._errors import (
    AppDomError,
    DocumentIntegrityError,
    EvaluationError,
    ExpressionSyntaxError,
    LoadingSignal,
    MigrationVersionError,
    NotFoundError,
    SchemaValidationError,
    UnsupportedOperationError,
)
from ._expr import LOADING, UNDEFINED, Failed, JsRuntime, LiveBinding, Loading, Ready
from ._fractional_index import generate_key_between
from ._functions import (
    DataProvider,
    DataProviderIntrospection,
    DataProviderSchema,
    FunctionRuntime,
    create_data_provider,
)
from ._graph import DependencyGraph
from ._io import dumps_document, load_document, loads_document, save_document
from ._migrations import migrate_up
from ._page import PageEvaluation, evaluate_page, fetch_page_queries
from ._scope import PageScope, ScopeBuilder, env_value
