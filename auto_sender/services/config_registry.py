"""
Config registry: in-memory collection of auto-sender configs.
"""

from typing import Dict, List, Optional

import structlog

from auto_sender.models.auto_sender import AutoSenderConfig


logger = structlog.get_logger(__name__)


class ConfigRegistry:
    """
    Insertion-ordered store of configs keyed by id.

    Several configs may watch the same source address; nothing here
    deduplicates them.
    """

    def __init__(self):
        self._configs: Dict[str, AutoSenderConfig] = {}
        self.logger = logger.bind(service="config_registry")

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, config_id: str) -> bool:
        return config_id in self._configs

    def add(self, config: AutoSenderConfig) -> AutoSenderConfig:
        self._configs[config.id] = config
        overlapping = [
            c.id for c in self._configs.values()
            if c.source_address == config.source_address and c.id != config.id
        ]
        if overlapping:
            self.logger.warning(
                "Another auto-sender already sweeps this source address",
                config_id=config.id,
                source_address=config.source_address,
                overlapping_ids=overlapping,
            )
        return config

    def get(self, config_id: str) -> Optional[AutoSenderConfig]:
        return self._configs.get(config_id)

    def remove(self, config_id: str) -> Optional[AutoSenderConfig]:
        return self._configs.pop(config_id, None)

    def toggle(self, config_id: str) -> Optional[AutoSenderConfig]:
        config = self._configs.get(config_id)
        if config is not None:
            config.is_active = not config.is_active
        return config

    def list(self) -> List[AutoSenderConfig]:
        return list(self._configs.values())

    def active(self) -> List[AutoSenderConfig]:
        """Snapshot of active configs in insertion order."""
        return [c for c in self._configs.values() if c.is_active]

    @property
    def active_count(self) -> int:
        return sum(1 for c in self._configs.values() if c.is_active)
