"""
Text generation capability used by the enricher
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class GenerationOptions:
    """Per-call overrides; None means use the generator's default"""
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    timeout: Optional[float] = None  # seconds

    def merge(self, other: Optional["GenerationOptions"]) -> "GenerationOptions":
        """Return a copy where every value set on `other` wins"""
        if other is None:
            return self
        overrides = {
            name: getattr(other, name)
            for name in ("model", "temperature", "max_tokens", "timeout")
            if getattr(other, name) is not None
        }
        return replace(self, **overrides)


class TextGenerator(ABC):
    """
    Prompt in, text out.

    Implementations raise core.exceptions.GenerationError (or a subclass)
    for connection failures, timeouts, non-2xx answers and unusable bodies.
    """

    @abstractmethod
    async def generate(self, prompt: str, options: Optional[GenerationOptions] = None) -> str:
        """Generate text for `prompt`"""
        pass

    async def check_availability(self) -> bool:
        """Whether the backing service is reachable"""
        return True
