"""
capability.py

Laminate CapabilityModule — a named, immutable bundle of methods.

A CapabilityModule declares its own method names at definition time,
independent of any object it is later layered onto. The composer never
copies a module; wrappers reference it and install its implementations
on the synthesized wrapper type, where they receive the wrapper as
``self``.

Design Invariants:
- Immutable after creation
- Declared names are known without an ancestor to wrap
- Names reserved by the framework can never be declared
- Equality and hashing are by identity (modules are cache keys)
"""

import keyword
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterator, Mapping, Optional, Union

from laminate.errors import InvalidLayerError, LayerImmutabilityError, ReservedNameError

# Public operations of the Layer mixin plus the slots every wrapper keeps.
RESERVED_NAMES: FrozenSet[str] = frozenset({
    "with_layer",
    "with_layers",
    "_laminate_ancestor",
    "_laminate_layers",
})

_METHOD_DESCRIPTORS = (staticmethod, classmethod, property)


def is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def is_reserved(name: str) -> bool:
    """Return True if ``name`` belongs to the framework and cannot be layered."""
    return name in RESERVED_NAMES or is_dunder(name)


def is_public(name: str) -> bool:
    return not name.startswith("_")


def _validate_method(module_name: str, name: Any, impl: Any) -> None:
    if not isinstance(name, str) or not name.isidentifier() or keyword.iskeyword(name):
        raise InvalidLayerError(
            f"Layer {module_name} has an invalid method name: {name!r}",
            value=name,
        )
    if not (callable(impl) or isinstance(impl, _METHOD_DESCRIPTORS)):
        raise InvalidLayerError(
            f"Layer {module_name} method '{name}' must be callable, "
            f"got {type(impl).__name__}",
            value=impl,
        )


class CapabilityModule:
    """
    Immutable, named set of method implementations.

    Example:
        def run(self):
            return "running"

        Runner = CapabilityModule("Runner", {"run": run})
        assert Runner.method_names == frozenset({"run"})

    Most modules are declared with the ``capability`` class decorator
    instead of building the mapping by hand.
    """

    __slots__ = ('_name', '_methods', '_public_names', '_frozen')

    def __init__(self, name: str, methods: Mapping[str, Any]):
        """
        Create a new CapabilityModule.

        Args:
            name: Stable module name; the last dotted segment is its short name
            methods: Mapping of method name to implementation

        Raises:
            InvalidLayerError: If the name or any method is malformed
            ReservedNameError: If any method name is reserved by the framework
        """
        object.__setattr__(self, '_frozen', False)

        if not isinstance(name, str) or not name.strip():
            raise InvalidLayerError(
                f"Layer name must be a non-empty string, got {name!r}",
                value=name,
            )
        if not isinstance(methods, Mapping):
            raise InvalidLayerError(
                f"Layer {name} methods must be a mapping, got {type(methods).__name__}",
                value=methods,
            )

        reserved = [k for k in methods if isinstance(k, str) and is_reserved(k)]
        if reserved:
            raise ReservedNameError(name, reserved)
        for method_name, impl in methods.items():
            _validate_method(name, method_name, impl)

        self._name = name
        self._methods = MappingProxyType(dict(methods))
        self._public_names = frozenset(k for k in self._methods if is_public(k))

        object.__setattr__(self, '_frozen', True)

    def __setattr__(self, name: str, value: Any) -> None:
        """Prevent mutation after construction."""
        if getattr(self, '_frozen', False):
            raise LayerImmutabilityError(f"set attribute '{name}'")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        """Prevent deletion of attributes."""
        raise LayerImmutabilityError(f"delete attribute '{name}'")

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def from_class(cls, source: type, name: Optional[str] = None) -> "CapabilityModule":
        """
        Build a module from the attributes a class body defines itself.

        Inherited attributes, dunder attributes and plain data are not
        part of the module. The default name is the class's qualified
        name without any enclosing function scope.
        """
        methods: Dict[str, Any] = {}
        for attr, value in vars(source).items():
            if is_dunder(attr):
                continue
            if callable(value) or isinstance(value, _METHOD_DESCRIPTORS):
                methods[attr] = value
        if name is None:
            name = source.__qualname__.rsplit("<locals>.", 1)[-1]
        return cls(name, methods)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def name(self) -> str:
        return self._name

    @property
    def short_name(self) -> str:
        """Last segment of the name, used to build wrapper type names."""
        return self._name.rsplit(".", 1)[-1]

    @property
    def methods(self) -> Mapping[str, Any]:
        """Read-only mapping of method name to implementation."""
        return self._methods

    @property
    def method_names(self) -> FrozenSet[str]:
        """Every name the module declares, private helpers included."""
        return frozenset(self._methods)

    @property
    def public_names(self) -> FrozenSet[str]:
        """Declared names that take part in collision checks and forwarding."""
        return self._public_names

    def defines(self, method_name: str) -> bool:
        return method_name in self._methods

    # =========================================================================
    # Container Protocol
    # =========================================================================

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._methods))

    def __len__(self) -> int:
        return len(self._methods)

    def __contains__(self, method_name: object) -> bool:
        return method_name in self._methods

    def __repr__(self) -> str:
        return f"CapabilityModule({self._name!r}, methods={sorted(self._methods)})"

    def __str__(self) -> str:
        return self._name


def capability(
    source: Optional[type] = None,
    *,
    name: Optional[str] = None,
) -> Union[CapabilityModule, Callable[[type], CapabilityModule]]:
    """
    Class decorator turning a class body into a CapabilityModule.

    Usage:
        @capability
        class Runner:
            def run(self):
                return "running"

        @capability(name="sports.Sprinter")
        class Sprinter:
            def sprint(self):
                return "sprinting"

    The decorated name is bound to the module, not to a class.
    """
    def decorate(cls: type) -> CapabilityModule:
        if not isinstance(cls, type):
            raise InvalidLayerError(
                f"@capability must decorate a class, got {type(cls).__name__}",
                value=cls,
            )
        return CapabilityModule.from_class(cls, name=name)

    if source is None:
        return decorate
    return decorate(source)
