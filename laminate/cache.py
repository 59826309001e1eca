"""
cache.py

Per-base-type memo of synthesized wrapper types.

Keys are ordered tuples of CapabilityModule objects, which compare and
hash by identity, so ``(Runner, Sprinter)`` and ``(Sprinter, Runner)``
are different entries. Entries are never evicted; they live as long as
the owning base type's composer.
"""

import logging
import threading
from typing import Callable, Dict, Iterator, Optional, Sequence, Tuple

from laminate.capability import CapabilityModule
from laminate.errors import InvalidLayerError
from laminate.factory import WrapperDescriptor

logger = logging.getLogger(__name__)

CacheKey = Tuple[CapabilityModule, ...]
CreateFn = Callable[[type, CacheKey, bool], WrapperDescriptor]


class WrapperCache:
    """
    Thread-safe mapping of ordered layer modules to WrapperDescriptor.

    Lookup and synthesis run under one lock, so concurrent first calls
    for the same key synthesize exactly once and all observe the same
    descriptor. A failed synthesis registers nothing.
    """

    def __init__(self, base_type: type):
        self._base_type = base_type
        self._entries: Dict[CacheKey, WrapperDescriptor] = {}
        self._lock = threading.RLock()

    @property
    def base_type(self) -> type:
        return self._base_type

    def get(self, layer_modules: Sequence[CapabilityModule]) -> Optional[WrapperDescriptor]:
        """Return the cached descriptor for ``layer_modules`` or None."""
        with self._lock:
            return self._entries.get(tuple(layer_modules))

    def get_or_create(
        self,
        base_type: type,
        layer_modules: Sequence[CapabilityModule],
        allow_overrides: bool,
        create_fn: CreateFn,
    ) -> WrapperDescriptor:
        """
        Return the descriptor for ``layer_modules``, synthesizing it on a miss.

        Args:
            base_type: Must be the type this cache belongs to
            layer_modules: Ordered capability modules (the key)
            allow_overrides: Forwarded to ``create_fn`` on a miss
            create_fn: Called as ``create_fn(base_type, key, allow_overrides)``

        Raises:
            InvalidLayerError: If ``base_type`` is not this cache's base type
            Whatever ``create_fn`` raises; nothing is cached in that case
        """
        if base_type is not self._base_type:
            raise InvalidLayerError(
                f"WrapperCache for {self._base_type.__qualname__} cannot hold "
                f"wrappers of {base_type.__qualname__}",
                value=base_type,
            )
        key = tuple(layer_modules)

        with self._lock:
            descriptor = self._entries.get(key)
            if descriptor is not None:
                logger.debug("wrapper cache hit: %s", descriptor.qualname)
                return descriptor

            descriptor = create_fn(base_type, key, allow_overrides)
            self._entries[key] = descriptor
            return descriptor

    def descriptors(self) -> Iterator[WrapperDescriptor]:
        with self._lock:
            return iter(list(self._entries.values()))

    def __contains__(self, layer_modules: object) -> bool:
        if not isinstance(layer_modules, (tuple, list)):
            return False
        with self._lock:
            return tuple(layer_modules) in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"WrapperCache({self._base_type.__qualname__}, entries={len(self)})"
