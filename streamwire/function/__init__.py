"""
streamwire Function Layer.

Core Components:
- FunctionCatalog: name -> invocable unit (function, stream, supplier, consumer)
- parse_definition / DefinitionComposer: "a|b|c" -> composed pipeline
- BindableFunctionProxy: channel names and channels for one definition
- RoutingFunction: per-message selection of the definition to apply
- FunctionBindingRegistrar: explicit registration and start/stop lifecycle
"""

from .catalog import (
    DefinitionError,
    FunctionCatalog,
    FunctionCatalogError,
    FunctionInvoker,
    FunctionKind,
    FunctionNotFoundError,
    RegisteredFunction,
)
from .definition import (
    CompositeFunction,
    DefinitionComposer,
    parse_definition,
    validate_stages,
)
from .expression import ExpressionError, ExpressionEvaluator, JinjaExpressionEvaluator
from .proxy import BindableFunctionProxy, computed_name
from .registrar import FunctionBinding, FunctionBindingRegistrar
from .router import (
    ROUTER_FUNCTION_NAME,
    DecisionSource,
    NoRoutingTargetError,
    RedirectLimitError,
    Rejected,
    RoutingDecision,
    RoutingError,
    RoutingFunction,
    RoutingOutcome,
    RoutingState,
    SingleValue,
    StreamingOutputError,
)

__all__ = [
    # Catalog
    "FunctionCatalog",
    "FunctionCatalogError",
    "FunctionInvoker",
    "FunctionKind",
    "RegisteredFunction",
    # Definitions
    "parse_definition",
    "validate_stages",
    "DefinitionComposer",
    "CompositeFunction",
    "DefinitionError",
    "FunctionNotFoundError",
    # Proxy
    "BindableFunctionProxy",
    "computed_name",
    # Expressions
    "ExpressionEvaluator",
    "JinjaExpressionEvaluator",
    "ExpressionError",
    # Routing
    "ROUTER_FUNCTION_NAME",
    "RoutingFunction",
    "RoutingDecision",
    "RoutingOutcome",
    "RoutingState",
    "DecisionSource",
    "SingleValue",
    "Rejected",
    "RoutingError",
    "NoRoutingTargetError",
    "StreamingOutputError",
    "RedirectLimitError",
    # Registrar
    "FunctionBinding",
    "FunctionBindingRegistrar",
]
