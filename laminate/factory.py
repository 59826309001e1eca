"""
factory.py

Laminate wrapper synthesis.

``synthesize`` turns a base type and an ordered tuple of capability
modules into a new wrapper type plus the WrapperDescriptor describing
it. The wrapper type's namespace is a dispatch table built once:

- each name declared by the layers maps to the layer's implementation
  (the last module in the tuple wins when several declare it)
- each other name reachable on the base type maps to a forwarder that
  reads the attribute from the wrapped ancestor

Anything else is absent from the type and raises AttributeError, the
same failure an unknown attribute raises on the base type.

Synthesis is pure: it instantiates nothing and registers nothing.
Memoization is the cache's job.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Sequence, Tuple

from laminate.capability import CapabilityModule
from laminate.collision import (
    DESCRIPTOR_ATTR,
    Collision,
    ancestor_chain,
    descriptor_of,
    detect,
    reachable_names,
)
from laminate.errors import MethodAlreadyDefinedError

logger = logging.getLogger(__name__)

__all__ = [
    "WrapperDescriptor",
    "Forwarder",
    "combined_name",
    "descriptor_of",
    "synthesize",
]


@dataclass(frozen=True, eq=False)
class WrapperDescriptor:
    """
    Immutable description of one synthesized wrapper type.

    Shared by every wrapper instance built from the same base type and
    the same ordered layer modules. Compared by identity.
    """
    base_type: type
    layer_modules: Tuple[CapabilityModule, ...]
    forwarded_names: FrozenSet[str]
    combined_name: str
    overrides: Tuple[Collision, ...]
    wrapper_type: type

    @property
    def layer_names(self) -> FrozenSet[str]:
        """Public names the layers define on the wrapper."""
        names = set()
        for module in self.layer_modules:
            names |= module.public_names
        return frozenset(names)

    @property
    def qualname(self) -> str:
        return f"{self.base_type.__qualname__}.{self.combined_name}"

    def __repr__(self) -> str:
        return (
            f"WrapperDescriptor({self.qualname}, "
            f"layers={[m.name for m in self.layer_modules]}, "
            f"forwarded={len(self.forwarded_names)})"
        )


class Forwarder:
    """Non-data descriptor reading one attribute from the wrapped ancestor."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = name

    def __get__(self, instance: Any, owner: Any = None) -> Any:
        if instance is None:
            return self
        return getattr(instance._laminate_ancestor, self.name)

    def __repr__(self) -> str:
        return f"Forwarder({self.name!r})"


def combined_name(layer_modules: Sequence[CapabilityModule]) -> str:
    """Name a wrapper type after its layers, e.g. ``WithRunnerAndSprinter``."""
    return "With" + "And".join(module.short_name for module in layer_modules)


def synthesize(
    base_type: type,
    layer_modules: Sequence[CapabilityModule],
    allow_overrides: bool,
    wrapper_base: type,
) -> WrapperDescriptor:
    """
    Synthesize the wrapper type for ``layer_modules`` applied to ``base_type``.

    Args:
        base_type: Type of the object being wrapped (may itself be a wrapper type)
        layer_modules: Ordered capability modules; later ones win on repeated names
        allow_overrides: Permit layers to shadow names already reachable
        wrapper_base: Class every synthesized wrapper type derives from

    Returns:
        WrapperDescriptor whose ``wrapper_type`` is ready to instantiate

    Raises:
        MethodAlreadyDefinedError: If any layer name is already reachable
            and overrides are not allowed
    """
    layer_modules = tuple(layer_modules)

    incoming: Dict[str, Any] = {}
    for module in layer_modules:
        incoming.update(module.methods)
    incoming_public = frozenset().union(*(m.public_names for m in layer_modules))

    collisions = detect(ancestor_chain(base_type), incoming_public)
    if collisions and not allow_overrides:
        raise MethodAlreadyDefinedError(collisions)

    forwarded = reachable_names(base_type) - incoming_public
    name = combined_name(layer_modules)

    namespace: Dict[str, Any] = {n: Forwarder(n) for n in sorted(forwarded)}
    namespace.update(incoming)
    namespace["__module__"] = base_type.__module__
    namespace["__qualname__"] = f"{base_type.__qualname__}.{name}"
    namespace["__doc__"] = (
        f"{base_type.__qualname__} wrapped with "
        f"{', '.join(m.name for m in layer_modules)}."
    )

    wrapper_type = type(name, (wrapper_base,), namespace)
    descriptor = WrapperDescriptor(
        base_type=base_type,
        layer_modules=layer_modules,
        forwarded_names=forwarded,
        combined_name=name,
        overrides=tuple(collisions),
        wrapper_type=wrapper_type,
    )
    setattr(wrapper_type, DESCRIPTOR_ATTR, descriptor)

    logger.debug(
        "synthesized %s (%d forwarded, %d layered, %d overridden)",
        descriptor.qualname, len(forwarded), len(incoming), len(collisions),
    )
    return descriptor
