"""
Cache Strategy

Max-age policy for the different kinds of content the container caches.
"""

import logging
from typing import Dict, Any, Optional


class CacheStrategy:
    """Maps a data type (or a cache key) to its cache policy."""

    def __init__(self, config: Optional[Dict[str, Any]] = None, logger: Optional[logging.Logger] = None) -> None:
        """
        Initialize cache strategy manager.

        Args:
            config: Optional ``cache`` config section; ``max_age`` overrides per data type
            logger: Optional logger instance
        """
        self.config = config or {}
        self.logger = logger or logging.getLogger(__name__)

    def get_cache_strategy(self, data_type: str) -> Dict[str, Any]:
        """
        Get the cache strategy for a data type.

        Args:
            data_type: One of 'gadget_spec', 'message_bundle', 'feature_js',
                'preload', 'registry' or anything else for the default

        Returns:
            Dictionary with 'max_age' (seconds, or None for never) and 'cacheable'
        """
        strategies = {
            # Gadget XML changes rarely but is owned by third parties
            'gadget_spec': {
                'max_age': 300,
                'cacheable': True
            },
            'message_bundle': {
                'max_age': 3600,
                'cacheable': True
            },
            # Compiled feature bundles are static for the process lifetime
            'feature_js': {
                'max_age': None,
                'cacheable': True
            },
            'registry': {
                'max_age': None,
                'cacheable': True
            },
            # Social data preloads are per-viewer
            'preload': {
                'max_age': 60,
                'cacheable': False
            },
            'default': {
                'max_age': 300,
                'cacheable': True
            }
        }

        strategy = dict(strategies.get(data_type, strategies['default']))
        overrides = self.config.get('max_age', {})
        if isinstance(overrides, dict) and data_type in overrides:
            try:
                value = overrides[data_type]
                strategy['max_age'] = None if value is None else int(value)
            except (TypeError, ValueError) as e:
                self.logger.warning("Ignoring invalid max_age override for %s: %s", data_type, e)
        return strategy

    def get_data_type_from_key(self, key: str) -> str:
        """
        Determine the cache data type from a cache key or URL.

        Args:
            key: Cache key

        Returns:
            Data type string for strategy lookup
        """
        key_lower = key.lower()

        if key_lower.startswith('features:'):
            return 'feature_js'

        if key_lower.startswith('registry:'):
            return 'registry'

        # Message bundles are conventionally named after their locale
        if 'messages' in key_lower or '/lang' in key_lower or key_lower.endswith('_all.xml'):
            return 'message_bundle'

        if key_lower.endswith('.xml'):
            return 'gadget_spec'

        return 'default'
