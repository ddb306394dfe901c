"""Method registry for the query surface.

Provides decorator-based method registration with Pydantic param validation,
and the single ``dispatch`` entry point every transport goes through. The set
of method names is fixed; ``validate`` checks at startup that exactly those
names are registered.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ValidationError

from astplane.core.errors import AstPlaneError, InternalError, InvalidArgumentError
from astplane.core.logging import clear_request_id, set_request_id

if TYPE_CHECKING:
    from astplane.index.ops import StructuralQueryEngine

log = structlog.get_logger(__name__)

# Handler signature: (engine, validated_params) -> dict
HandlerFn = Callable[["StructuralQueryEngine", Any], dict[str, Any]]

METHOD_NAMES = frozenset(
    {
        "get_symbols",
        "get_tree",
        "query_nodes",
        "get_node_details",
        "get_ancestors",
        "find_definition",
        "find_references",
        "get_call_hierarchy",
        "list_files",
        "status",
    }
)


class Response(BaseModel):
    """Response envelope returned for every dispatched call."""

    success: bool
    result: Any = None
    error: dict[str, Any] | None = None


@dataclass
class MethodSpec:
    """Specification for a registered method."""

    name: str
    handler: HandlerFn
    description: str
    params_model: type[BaseModel]


class MethodRegistry:
    """Registry mapping method names to handlers."""

    def __init__(self) -> None:
        self._methods: dict[str, MethodSpec] = {}

    def register(
        self,
        name: str,
        description: str,
        params_model: type[BaseModel],
    ) -> Callable[[HandlerFn], HandlerFn]:
        """Decorator to register a method handler.

        Usage:
            @registry.register("get_tree", "Stored tree of a file", FileParams)
            def get_tree(engine: StructuralQueryEngine, params: FileParams) -> dict:
                ...
        """

        def decorator(fn: HandlerFn) -> HandlerFn:
            self._methods[name] = MethodSpec(
                name=name,
                handler=fn,
                description=description,
                params_model=params_model,
            )
            return fn

        return decorator

    def get_all(self) -> list[MethodSpec]:
        """All registered method specs, sorted by name."""
        return [self._methods[name] for name in sorted(self._methods)]

    def validate(self) -> None:
        """Check the registered names are exactly the supported method set.

        Raises:
            InternalError: A method is missing or an unexpected one is registered.
        """
        registered = set(self._methods)
        missing = sorted(METHOD_NAMES - registered)
        unexpected = sorted(registered - METHOD_NAMES)
        if missing or unexpected:
            raise InternalError.unexpected(
                "method registry mismatch", missing=missing, unexpected=unexpected
            )

    def dispatch(
        self,
        engine: StructuralQueryEngine,
        method: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Run one call and wrap the outcome in a response envelope.

        Never raises: every failure comes back as ``success=False``.
        """
        params = params or {}
        request_id = set_request_id()
        start_time = time.perf_counter()
        log.info("method_start", method=method, request_id=request_id)

        try:
            spec = self._methods.get(method)
            if spec is None:
                raise InvalidArgumentError.unknown_method(method)
            validated = _validate_params(spec.params_model, params)
            result = spec.handler(engine, validated)

        except AstPlaneError as e:
            elapsed_ms = int((time.perf_counter() - start_time) * 1000)
            log.warning(
                "method_error",
                method=method,
                error_code=e.code.value,
                error=e.message,
                elapsed_ms=elapsed_ms,
            )
            return Response(success=False, error=e.to_dict()).model_dump()

        except Exception as e:
            elapsed_ms = int((time.perf_counter() - start_time) * 1000)
            log.error("method_internal_error", method=method, error=str(e), elapsed_ms=elapsed_ms)
            log.debug("method_internal_error_traceback", method=method, exc_info=True)
            wrapped = InternalError.unexpected(
                str(e), operation=method, params={k: str(v) for k, v in params.items()}
            )
            return Response(success=False, error=wrapped.to_dict()).model_dump()

        finally:
            clear_request_id()

        elapsed_ms = int((time.perf_counter() - start_time) * 1000)
        log.info("method_complete", method=method, elapsed_ms=elapsed_ms)
        return Response(success=True, result=result).model_dump()


def _validate_params(params_model: type[BaseModel], params: dict[str, Any]) -> BaseModel:
    """Build the params model, mapping validation failures to InvalidArgumentError."""
    try:
        return params_model(**params)
    except ValidationError as e:
        errors = e.errors()
        missing = [
            ".".join(str(x) for x in err["loc"]) for err in errors if err["type"] == "missing"
        ]
        if missing:
            raise InvalidArgumentError.missing(*missing) from e
        first = errors[0]
        field = ".".join(str(x) for x in first["loc"])
        raise InvalidArgumentError.malformed(field, first.get("input"), first["msg"]) from e


# Global registry instance
registry = MethodRegistry()
