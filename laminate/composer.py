"""
composer.py

Laminate LayerComposer — the public entry point.

``with_layers`` orchestrates one composition:

1. Validate the layer modules (before the cache is touched)
2. Validate the options
3. Look up or synthesize the wrapper type for (target type, layers)
4. Instantiate it around the target

The target is never mutated; each call returns a new, independent
wrapper holding a reference to its ancestor. Wrappers are Layer objects
themselves, so further layers can be stacked on them.

Example:
    @capability
    class Runner:
        def run(self):
            return "running"

    class Person(Layer):
        def walk(self):
            return "walking"

    runner = Person().with_layer(Runner)
    runner.walk(), runner.run()  # ("walking", "running")
"""

import collections.abc
import logging
import threading
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from laminate.cache import WrapperCache
from laminate.capability import CapabilityModule
from laminate.collision import descriptor_of
from laminate.errors import (
    InvalidLayerError,
    MethodAlreadyDefinedError,
    UnsupportedStrategyError,
)
from laminate.factory import WrapperDescriptor, synthesize

logger = logging.getLogger(__name__)

COMPOSER_ATTR = "__laminate_composer__"


# =============================================================================
# Options
# =============================================================================

@dataclass(frozen=True)
class LayerOptions:
    """Options accepted by with_layer/with_layers."""
    allow_overrides: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.allow_overrides, bool):
            raise UnsupportedStrategyError(
                "allow_overrides", self.allow_overrides, "expected True or False"
            )

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "LayerOptions":
        """
        Build options from keyword arguments.

        Raises:
            UnsupportedStrategyError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        for key in sorted(options):
            if key not in known:
                raise UnsupportedStrategyError(key, options[key], "unknown option")
        return cls(**options)


def _validate_layers(layer_modules: Any) -> Tuple[CapabilityModule, ...]:
    if isinstance(layer_modules, CapabilityModule):
        raise InvalidLayerError(
            f"with_layers expects a sequence of layers, got {layer_modules.name}; "
            "use with_layer for a single layer",
            value=layer_modules,
        )
    if isinstance(layer_modules, (str, bytes)) or not isinstance(layer_modules, collections.abc.Iterable):
        raise InvalidLayerError(
            f"layers must be a sequence of capability modules, got "
            f"{type(layer_modules).__name__}",
            value=layer_modules,
        )

    modules = tuple(layer_modules)
    if not modules:
        raise InvalidLayerError("at least one layer is required", value=layer_modules)

    for module in modules:
        if isinstance(module, CapabilityModule):
            continue
        hint = " (decorate it with @capability)" if isinstance(module, type) else ""
        raise InvalidLayerError(
            f"layers must all be capability modules, got "
            f"{type(module).__name__}: {module!r}{hint}",
            value=module,
        )
    return modules


# =============================================================================
# LayerComposer
# =============================================================================

def _create_descriptor(
    base_type: type,
    layer_modules: Tuple[CapabilityModule, ...],
    allow_overrides: bool,
) -> WrapperDescriptor:
    return synthesize(base_type, layer_modules, allow_overrides, LayerWrapper)


class LayerComposer:
    """
    Composes layers onto objects of one base type.

    Owns the WrapperCache for that type, so identical ordered layer sets
    always resolve to the same WrapperDescriptor.
    """

    def __init__(self, base_type: type):
        self._base_type = base_type
        self._cache = WrapperCache(base_type)

    @property
    def base_type(self) -> type:
        return self._base_type

    @property
    def cache(self) -> WrapperCache:
        return self._cache

    def resolve(
        self,
        layer_modules: Iterable[CapabilityModule],
        options: Optional[LayerOptions] = None,
    ) -> WrapperDescriptor:
        """
        Return the descriptor for ``layer_modules`` on this composer's base type.

        A descriptor cached by an earlier call that allowed overrides is
        only returned when overrides are allowed for this call too.
        """
        modules = _validate_layers(layer_modules)
        options = options or LayerOptions()

        descriptor = self._cache.get_or_create(
            self._base_type, modules, options.allow_overrides, _create_descriptor
        )
        if descriptor.overrides and not options.allow_overrides:
            raise MethodAlreadyDefinedError(descriptor.overrides)
        return descriptor

    def compose(
        self,
        target: Any,
        layer_modules: Iterable[CapabilityModule],
        **options: Any,
    ) -> "LayerWrapper":
        """Wrap ``target`` with ``layer_modules``; see ``Layer.with_layers``."""
        modules = _validate_layers(layer_modules)
        layer_options = LayerOptions.from_options(options)
        if type(target) is not self._base_type:
            raise InvalidLayerError(
                f"LayerComposer for {self._base_type.__qualname__} cannot wrap "
                f"{type(target).__qualname__} objects",
                value=target,
            )

        descriptor = self.resolve(modules, layer_options)
        wrapper = descriptor.wrapper_type(target, modules)
        logger.debug("wrapped %s as %s", self._base_type.__qualname__, descriptor.qualname)
        return wrapper

    def __repr__(self) -> str:
        return f"LayerComposer({self._base_type.__qualname__}, cached={len(self._cache)})"


# Composers for types that do not inherit Layer.
_composers: Dict[type, LayerComposer] = {}
_composers_lock = threading.Lock()


def composer_for(base_type: type) -> LayerComposer:
    """Return the LayerComposer owning wrappers of ``base_type``."""
    composer = vars(base_type).get(COMPOSER_ATTR)
    if composer is not None:
        return composer
    with _composers_lock:
        composer = _composers.get(base_type)
        if composer is None:
            composer = _composers[base_type] = LayerComposer(base_type)
        return composer


# =============================================================================
# Layer mixin and wrapper base
# =============================================================================

class Layer:
    """
    Mixin giving a class ``with_layer``/``with_layers``.

    Every subclass gets its own LayerComposer, and with it its own
    wrapper cache, when the class is created.
    """

    __slots__ = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        setattr(cls, COMPOSER_ATTR, LayerComposer(cls))

    def with_layer(self, layer_module: CapabilityModule, **options: Any) -> "LayerWrapper":
        """Wrap this object with a single layer. See ``with_layers``."""
        return self.with_layers([layer_module], **options)

    def with_layers(self, layer_modules: Iterable[CapabilityModule], **options: Any) -> "LayerWrapper":
        """
        Wrap this object with one or more layers applied together.

        Args:
            layer_modules: Ordered capability modules; later ones win on repeated names
            allow_overrides: Let the layers shadow names already reachable (default False)

        Returns:
            A new wrapper around this object

        Raises:
            InvalidLayerError: If any element is not a capability module
            MethodAlreadyDefinedError: If a layer name collides and overrides are not allowed
            UnsupportedStrategyError: On unknown or invalid options
        """
        return composer_for(type(self)).compose(self, layer_modules, **options)


class LayerWrapper(Layer):
    """
    Base class of every synthesized wrapper type.

    Holds a reference to the wrapped ancestor (not a copy) and the layer
    modules applied by this wrapper.
    """

    def __init__(self, ancestor: Any, layer_modules: Tuple[CapabilityModule, ...]):
        self._laminate_ancestor = ancestor
        self._laminate_layers = tuple(layer_modules)

    def __repr__(self) -> str:
        return f"<{type(self).__qualname__} wrapping {self._laminate_ancestor!r}>"


# =============================================================================
# Functional API
# =============================================================================

def with_layer(target: Any, layer_module: CapabilityModule, **options: Any) -> LayerWrapper:
    """Wrap any object with a single layer."""
    return with_layers(target, [layer_module], **options)


def with_layers(target: Any, layer_modules: Iterable[CapabilityModule], **options: Any) -> LayerWrapper:
    """Wrap any object with one or more layers; see ``Layer.with_layers``."""
    return composer_for(type(target)).compose(target, layer_modules, **options)


# =============================================================================
# Introspection
# =============================================================================

def is_wrapper(obj: Any) -> bool:
    """True if ``obj`` is a wrapper instance built by Laminate."""
    return not isinstance(obj, type) and descriptor_of(obj) is not None


def ancestor_of(obj: Any) -> Any:
    """The object ``obj`` wraps, or None when ``obj`` is not a wrapper."""
    if not is_wrapper(obj):
        return None
    return obj._laminate_ancestor


def layers_of(obj: Any) -> Tuple[CapabilityModule, ...]:
    """Layer modules applied by ``obj`` itself (not by its ancestors)."""
    if not is_wrapper(obj):
        return ()
    return obj._laminate_layers


def ancestors(obj: Any) -> Iterator[Any]:
    """Yield ``obj``, then each ancestor outward to the ultimate base object."""
    yield obj
    while is_wrapper(obj):
        obj = obj._laminate_ancestor
        yield obj
