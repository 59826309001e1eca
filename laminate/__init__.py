"""
Laminate — Runtime Capability Layers
====================================

Laminate augments an object at runtime with one or more capability
modules (named bundles of methods). Each application returns a new
wrapper exposing the object's own operations plus the layer's, without
mutating the object or its type.

Public API
----------
Everything exported in ``__all__`` is public:

- **Layers**: CapabilityModule, capability
- **Composition**: Layer, LayerWrapper, LayerComposer, LayerOptions,
  with_layer, with_layers
- **Synthesis**: WrapperDescriptor, WrapperCache, Collision, ChainLink,
  ancestor_chain, detect, reachable_names
- **Introspection**: descriptor_of, is_wrapper, ancestor_of, layers_of,
  ancestors
- **Exceptions**: LayerError and its subclasses

Example
-------
::

    from laminate import Layer, capability

    class Person(Layer):
        def jog(self):
            return "jogging"

    @capability
    class Runner:
        def run(self):
            return "running"

    runner = Person().with_layer(Runner)
    runner.jog()   # "jogging", forwarded to the Person
    runner.run()   # "running"
    type(runner).__qualname__   # "Person.WithRunner"
"""

__version__ = "1.0.0"

__all__ = [
    # --- Package Metadata ---
    "__version__",

    # --- Capability Modules ---
    "CapabilityModule",
    "capability",
    "RESERVED_NAMES",

    # --- Composition ---
    "Layer",
    "LayerWrapper",
    "LayerComposer",
    "LayerOptions",
    "composer_for",
    "with_layer",
    "with_layers",

    # --- Synthesis ---
    "WrapperDescriptor",
    "WrapperCache",
    "Collision",
    "ChainLink",
    "ancestor_chain",
    "detect",
    "reachable_names",

    # --- Introspection ---
    "descriptor_of",
    "is_wrapper",
    "ancestor_of",
    "layers_of",
    "ancestors",

    # --- Exceptions ---
    "LayerError",
    "InvalidLayerError",
    "ReservedNameError",
    "MethodAlreadyDefinedError",
    "UnsupportedStrategyError",
    "LayerImmutabilityError",
]

from laminate.cache import WrapperCache
from laminate.capability import RESERVED_NAMES, CapabilityModule, capability
from laminate.collision import (
    ChainLink,
    Collision,
    ancestor_chain,
    descriptor_of,
    detect,
    reachable_names,
)
from laminate.composer import (
    Layer,
    LayerComposer,
    LayerOptions,
    LayerWrapper,
    ancestor_of,
    ancestors,
    composer_for,
    is_wrapper,
    layers_of,
    with_layer,
    with_layers,
)
from laminate.errors import (
    InvalidLayerError,
    LayerError,
    LayerImmutabilityError,
    MethodAlreadyDefinedError,
    ReservedNameError,
    UnsupportedStrategyError,
)
from laminate.factory import WrapperDescriptor
