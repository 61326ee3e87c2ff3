"""Composable async cache: adapters, the Cache facade and the dual-layer composite."""

from brainrot.cache.adapter import CacheAdapter
from brainrot.cache.cache import Cache
from brainrot.cache.dual_layer import DualLayerCacheAdapter

__all__ = ["Cache", "CacheAdapter", "DualLayerCacheAdapter"]
