# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Registry for symbol usage detector plugins."""

import logging
from typing import List

from .base import UsageDetector

logger = logging.getLogger(__name__)


class DetectorRegistry:
    """Registry for usage detector plugins with priority-based dispatch.

    Thread Safety:
    - Register all detectors during initialization before extraction starts;
      after that the registry is only read.
    """

    def __init__(self) -> None:
        """Initialize empty detector registry."""
        self._detectors: List[UsageDetector] = []
        self._sorted: bool = True

    def register(self, detector: UsageDetector) -> None:
        """Register a detector plugin.

        Raises:
            TypeError: If detector is not a UsageDetector instance.
        """
        if not isinstance(detector, UsageDetector):
            raise TypeError(f"Detector must be a UsageDetector instance, got {type(detector)}")

        self._detectors.append(detector)
        self._sorted = False

        logger.debug(f"Registered detector '{detector.name()}' with priority {detector.priority()}")

    def get_detectors(self) -> List[UsageDetector]:
        """Get all registered detectors, highest priority first."""
        if not self._sorted:
            # Sort by priority (highest first), then by name for stability
            self._detectors.sort(key=lambda d: (-d.priority(), d.name()))
            self._sorted = True

        return self._detectors

    def clear(self) -> None:
        self._detectors.clear()
        self._sorted = True

    def count(self) -> int:
        return len(self._detectors)
