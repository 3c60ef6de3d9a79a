# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Registry for declaration recognizer plugins with priority-based dispatch."""

import logging
from typing import List

from .base import DeclarationRecognizer

logger = logging.getLogger(__name__)


class RecognizerRegistry:
    """Registry for declaration recognizers, highest priority first.

    Thread Safety:
    - NOT thread-safe: Designed for single-threaded use
    - Register all recognizers during initialization before parsing
    """

    def __init__(self) -> None:
        """Initialize empty recognizer registry."""
        self._recognizers: List[DeclarationRecognizer] = []
        self._sorted: bool = True

    def register(self, recognizer: DeclarationRecognizer) -> None:
        """Register a recognizer plugin.

        Raises:
            TypeError: If recognizer is not a DeclarationRecognizer instance.
        """
        if not isinstance(recognizer, DeclarationRecognizer):
            raise TypeError(
                f"Recognizer must be a DeclarationRecognizer instance, got {type(recognizer)}"
            )

        self._recognizers.append(recognizer)
        self._sorted = False

        logger.debug(
            f"Registered recognizer '{recognizer.name()}' with priority {recognizer.priority()}"
        )

    def get_recognizers(self) -> List[DeclarationRecognizer]:
        """Get all registered recognizers sorted by priority (highest first)."""
        if not self._sorted:
            self._recognizers.sort(key=lambda r: (-r.priority(), r.name()))
            self._sorted = True

        return self._recognizers

    def clear(self) -> None:
        """Remove all registered recognizers."""
        self._recognizers.clear()
        self._sorted = True

    def count(self) -> int:
        return len(self._recognizers)
