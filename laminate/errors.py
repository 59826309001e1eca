"""
errors.py

Error taxonomy for Laminate.

Every failure raised while composing layers is local and synchronous:
a failed ``with_layers`` call leaves the wrapper cache and the wrapped
object untouched. Callers match failures by class:

- InvalidLayerError          (L001): something passed in is not a layer
- ReservedNameError          (L002): a layer declares a framework name
- MethodAlreadyDefinedError  (L003): a layer would shadow an existing method
- UnsupportedStrategyError   (L004): an unknown or malformed option
"""

from typing import Any, List, Sequence, Tuple


class LayerError(Exception):
    """
    Base class for all Laminate errors.
    """

    def __init__(
        self,
        message: str,
        *,
        error_code: str = "L000",
    ):
        self.message = message
        self.error_code = error_code
        super().__init__(self.format())

    def format(self) -> str:
        """Format as human-readable error message."""
        return f"[{self.error_code}] {self.message}"


# === Argument Errors (L001, L002) ===

class InvalidLayerError(LayerError):
    """Raised when an argument to with_layer/with_layers is not a capability module."""

    def __init__(self, message: str, *, value: Any = None, error_code: str = "L001"):
        self.value = value
        super().__init__(message, error_code=error_code)


class ReservedNameError(InvalidLayerError):
    """Raised when a capability module declares a name reserved by Laminate."""

    def __init__(self, module_name: str, names: Sequence[str]):
        self.module_name = module_name
        self.names = sorted(names)
        listed = ", ".join(f"'{name}'" for name in self.names)
        super().__init__(
            f"Layer {module_name} cannot define reserved name(s): {listed}",
            value=module_name,
            error_code="L002",
        )


# === Composition Errors (L003) ===

class MethodAlreadyDefinedError(LayerError):
    """
    Raised when a layer defines methods the target already responds to.

    Lists every colliding name at once so all conflicts can be fixed in
    one pass.
    """

    def __init__(self, collisions: Sequence[Any]):
        self.collisions: Tuple[Any, ...] = tuple(collisions)
        lines: List[str] = [
            f"  '{c.method_name}' is already defined by {c.origin}"
            for c in self.collisions
        ]
        noun = "layer" if len(lines) == 1 else "layers"
        super().__init__(
            f"Unable to add {noun} (pass `allow_overrides=True` if "
            f"intentional):\n" + "\n".join(lines),
            error_code="L003",
        )

    @property
    def method_names(self) -> List[str]:
        """Names of every colliding method, in detection order."""
        return [c.method_name for c in self.collisions]


# === Configuration Errors (L004) ===

class UnsupportedStrategyError(LayerError):
    """Raised when a composition option is unknown or has an unsupported value."""

    def __init__(self, option: str, value: Any, reason: str = ""):
        self.option = option
        self.value = value
        detail = f": {reason}" if reason else ""
        super().__init__(
            f"Unsupported layer option {option}={value!r}{detail}",
            error_code="L004",
        )


class LayerImmutabilityError(Exception):
    """Raised when attempting to mutate an immutable capability module."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Cannot {operation}: CapabilityModule is immutable after creation"
        )
