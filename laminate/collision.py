"""
collision.py

Laminate collision detection.

Before a layer is applied, every public name it declares is checked
against everything already reachable on the target. The target is
described by its ancestor chain, walked over the explicit wrapper
structure rather than over instance internals:

    Person.WithRunner.WithSprinter
      -> layers (Sprinter,)
      -> layers (Runner,)
      -> type Person

Each link contributes only the names it introduces itself. A colliding
name is reported once, against the first link that defines it when
searching outward from the innermost one.
"""

import dataclasses
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import (
    Any,
    ClassVar,
    Collection,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
    Tuple,
    Union,
    get_origin,
)

from laminate.capability import CapabilityModule, is_public, is_reserved

logger = logging.getLogger(__name__)

DESCRIPTOR_ATTR = "__laminate_descriptor__"

# Operations common to every object; never forwarded or collision-checked.
_OBJECT_NAMES: FrozenSet[str] = frozenset(dir(object))


@dataclass(frozen=True)
class Collision:
    """A method name already defined somewhere in the ancestor chain."""
    method_name: str
    origin: str


@dataclass(frozen=True)
class ChainLink:
    """
    One link of an ancestor chain.

    ``source`` is either a plain type or the tuple of capability modules
    applied by one wrapper. ``owners`` maps each name the link introduces
    to the label of the class or module defining it.
    """
    source: Union[type, Tuple[CapabilityModule, ...]]
    owners: Mapping[str, str]

    @property
    def names(self) -> FrozenSet[str]:
        return frozenset(self.owners)

    @property
    def is_layer(self) -> bool:
        return isinstance(self.source, tuple)


def descriptor_of(target: Any) -> Optional[Any]:
    """
    Return the WrapperDescriptor of a wrapper (instance or type), else None.

    Only the type's own namespace is consulted, so plain objects and
    subclasses never inherit a descriptor by accident.
    """
    t = target if isinstance(target, type) else type(target)
    return vars(t).get(DESCRIPTOR_ATTR)


def _own_annotations(klass: type) -> Mapping[str, Any]:
    namespace = vars(klass)
    annotations = namespace.get("__annotations__")
    if annotations is None and (
        "__annotate__" in namespace or "__annotate_func__" in namespace
    ):
        # Lazily evaluated annotations (Python 3.14+).
        annotations = klass.__annotations__
    return annotations if isinstance(annotations, Mapping) else {}


def _excluded_annotation(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(
            ("ClassVar", "typing.ClassVar", "InitVar", "dataclasses.InitVar")
        )
    if isinstance(annotation, dataclasses.InitVar):
        return True
    return annotation is ClassVar or get_origin(annotation) is ClassVar


def _annotated_names(klass: type) -> Set[str]:
    return {
        name for name, annotation in _own_annotations(klass).items()
        if not _excluded_annotation(annotation)
    }


def _declared_fields(t: type) -> Set[str]:
    names: Set[str] = set()
    if dataclasses.is_dataclass(t):
        names.update(f.name for f in dataclasses.fields(t))
    for klass in t.__mro__:
        names.update(_annotated_names(klass))
    return names


def reachable_names(t: type) -> FrozenSet[str]:
    """
    Every public name reachable on instances of ``t``.

    Includes methods, properties and class attributes found through the
    MRO, plus instance attributes declared by class annotations or
    dataclass fields (ClassVar and InitVar excluded). Excludes private
    names, names common to all objects and names reserved by Laminate.
    """
    names = set(dir(t)) | _declared_fields(t)
    return frozenset(
        name for name in names
        if is_public(name) and name not in _OBJECT_NAMES and not is_reserved(name)
    )


def _origin_of(t: type, name: str) -> str:
    for klass in t.__mro__:
        if name in vars(klass) or name in _annotated_names(klass):
            return klass.__qualname__
    return t.__qualname__


def _type_link(t: type) -> ChainLink:
    owners = {name: _origin_of(t, name) for name in sorted(reachable_names(t))}
    return ChainLink(source=t, owners=MappingProxyType(owners))


def _layer_link(layer_modules: Sequence[CapabilityModule]) -> ChainLink:
    owners = {}
    # Later modules shadow earlier ones within a single application.
    for module in layer_modules:
        for name in module.public_names:
            owners[name] = module.name
    return ChainLink(source=tuple(layer_modules), owners=MappingProxyType(dict(sorted(owners.items()))))


def ancestor_chain(base_type: type) -> List[ChainLink]:
    """
    Build the ancestor chain for objects of ``base_type``.

    Wrapper types contribute the layers they apply, then the chain of the
    type they wrap; the walk ends at the first plain type.
    """
    links: List[ChainLink] = []
    t = base_type
    while True:
        descriptor = descriptor_of(t)
        if descriptor is None:
            links.append(_type_link(t))
            return links
        links.append(_layer_link(descriptor.layer_modules))
        t = descriptor.base_type


def _is_chain(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(
        isinstance(link, ChainLink) for link in value
    )


def detect(
    chain: Union[Sequence[ChainLink], type, Any],
    incoming_names: Collection[str],
) -> List[Collision]:
    """
    Find every incoming name already defined along ``chain``.

    Args:
        chain: Ancestor chain, innermost link first. A type, or an object
            whose type is used, is expanded with ``ancestor_chain``.
        incoming_names: Public names declared by the layers being added

    Returns:
        One Collision per colliding name (empty when there is none)
    """
    if not _is_chain(chain):
        chain = ancestor_chain(chain if isinstance(chain, type) else type(chain))

    incoming = set(incoming_names)
    found: List[Collision] = []
    seen: Set[str] = set()

    for link in chain:
        for name in sorted(link.names & incoming - seen):
            found.append(Collision(method_name=name, origin=link.owners[name]))
            seen.add(name)

    if found:
        logger.debug(
            "collisions detected: %s",
            ", ".join(f"{c.method_name} ({c.origin})" for c in found),
        )
    return found
