"""Runtime evaluating binding expressions in an isolated context."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from appdom._dom import ConstValue, EnvValue, ExpressionValue, NodeRefValue
from appdom._errors import EvaluationError, LoadingSignal

from ._globals import TimerRegistry, build_globals
from ._interpreter import Interpreter
from ._parser import parse
from ._result import Failed, Loading, Ready
from ._values import UNDEFINED, contains_loading

if TYPE_CHECKING:
    from appdom._dom import BindableAttrValue

    from ._result import LiveBinding

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EvaluationContext:
    """The isolated context shared by every evaluation of one runtime."""

    interpreter: Interpreter
    timers: TimerRegistry


class JsRuntime:
    """Evaluates binding expressions against a scope.

    The evaluation context (ambient globals, timer registry) is created on
    first use and kept for the lifetime of the runtime. Calls are not expected
    to run concurrently.

    Args:
        env: Environment values resolved by ``env`` bindings.

    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self.env: dict[str, str] = dict(env or {})
        self._context: EvaluationContext | None = None

    @property
    def context(self) -> EvaluationContext:
        if self._context is None:
            logger.debug("Creating expression evaluation context")
            timers = TimerRegistry()
            self._context = EvaluationContext(interpreter=Interpreter(build_globals(timers)), timers=timers)
        return self._context

    @property
    def has_context(self) -> bool:
        return self._context is not None

    def evaluate_expression(self, code: str, scope: Mapping[str, Any] | None = None) -> LiveBinding:
        """Evaluate ``code`` with the keys of ``scope`` as bare identifiers.

        No exception escapes: a ``LoadingSignal`` raised by a host callable, or
        a ``LOADING`` placeholder read by the expression or left anywhere in its
        value, gives ``Loading``;
        any other error gives ``Failed`` with the original exception.

        Example:
            >>> JsRuntime().evaluate_expression("3 + x", {"x": 5})
            Ready(value=8)

        """
        try:
            tree = parse(code)
            value = self.context.interpreter.evaluate(tree, scope or {})
        except LoadingSignal:
            return Loading()
        except Exception as error:  # noqa: BLE001
            logger.debug(f"Expression {code!r} failed: {error}")
            return Failed(error)
        if contains_loading(value):
            return Loading()
        return Ready(value)

    def evaluate_bindable(self, bindable: BindableAttrValue, scope: Mapping[str, Any] | None = None) -> LiveBinding:
        """Resolve a bindable attribute value against ``scope``."""
        match bindable:
            case ConstValue(value=value):
                return Ready(value)
            case ExpressionValue(value=code):
                return self.evaluate_expression(code, scope)
            case EnvValue(name=name):
                return Ready(self.env.get(name, UNDEFINED))
            case NodeRefValue(node_id=node_id):
                msg = f"Unresolved reference to node '{node_id}'"
                return Failed(EvaluationError(msg))
        msg = f"Unknown bindable value {bindable!r}"
        return Failed(EvaluationError(msg))

    def close(self) -> None:
        """Cancel pending timers and drop the evaluation context."""
        if self._context is not None:
            self._context.timers.cancel_all()
            self._context = None
