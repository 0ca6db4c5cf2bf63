"""
Processor factory.

Selects the card processor by name, defaulting to the one configured in
``settings.checkout.processor``.
"""

from typing import Any

import structlog

from checkout_authorization.config import settings
from checkout_authorization.processors.base import CardProcessor
from checkout_authorization.processors.mock_processor import MockProcessor
from checkout_authorization.processors.stripe_processor import StripeProcessor

logger = structlog.get_logger(__name__)


class ProcessorFactory:
    """Factory for card processor instances."""

    _PROCESSORS: dict[str, type[CardProcessor]] = {
        "stripe": StripeProcessor,
        "mock": MockProcessor,
    }

    @classmethod
    def create_processor(
        cls,
        processor_name: str,
        processor_config: dict[str, Any] | None = None,
    ) -> CardProcessor:
        """
        Create a card processor instance by name.

        Args:
            processor_name: Name of the processor (e.g., "stripe", "mock")
            processor_config: Keyword arguments for the processor. Defaults
                to the values from global settings.

        Raises:
            ValueError: If processor_name is not registered
        """
        processor_name_lower = processor_name.lower()

        if processor_name_lower not in cls._PROCESSORS:
            available = ", ".join(sorted(cls._PROCESSORS))
            raise ValueError(
                f"Unknown processor: {processor_name}. "
                f"Available processors: {available}"
            )

        if processor_config is None:
            processor_config = cls._get_default_config(processor_name_lower)

        processor_class = cls._PROCESSORS[processor_name_lower]
        logger.info(
            "processor_created",
            processor_name=processor_name_lower,
            processor_class=processor_class.__name__,
        )
        return processor_class(**processor_config)

    @classmethod
    def _get_default_config(cls, processor_name: str) -> dict[str, Any]:
        if processor_name == "stripe":
            return {"api_key": settings.stripe.api_key}
        return {}

    @classmethod
    def register_processor(cls, name: str, processor_class: type[CardProcessor]) -> None:
        """Register an additional processor type under ``name``."""
        if not issubclass(processor_class, CardProcessor):
            raise TypeError(
                f"{processor_class.__name__} must inherit from CardProcessor"
            )

        cls._PROCESSORS[name.lower()] = processor_class
        logger.info(
            "processor_registered",
            processor_name=name.lower(),
            processor_class=processor_class.__name__,
        )

    @classmethod
    def list_processors(cls) -> list[str]:
        return sorted(cls._PROCESSORS.keys())


def get_processor(
    processor_name: str | None = None,
    processor_config: dict[str, Any] | None = None,
) -> CardProcessor:
    """
    Convenience function to create a card processor.

    Examples:
        processor = get_processor()            # settings.checkout.processor
        processor = get_processor("mock")
    """
    if processor_name is None:
        processor_name = settings.checkout.processor

    return ProcessorFactory.create_processor(processor_name, processor_config)
