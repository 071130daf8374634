"""Optional advisory collaborator for recovery.

An advisory provider can add suggestions to the manual steps shown after a
failure. It is unavailable by default; the recovery orchestrator treats any
error it raises as "no suggestions".
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ..models.recovery import Suggestion


class SuggestionProvider(ABC):
    """Source of extra, non-automated recovery suggestions."""

    @abstractmethod
    def suggest(self, error_description: str, context: Dict[str, Any]) -> List[Suggestion]:
        """Return zero or more suggestions for an error.

        Args:
            error_description: The error message
            context: Free-form context (target path, category, severity)
        """


class NullSuggestionProvider(SuggestionProvider):
    """Provider used when no advisory service is configured."""

    def suggest(self, error_description: str, context: Dict[str, Any]) -> List[Suggestion]:
        return []


__all__ = ["SuggestionProvider", "NullSuggestionProvider"]
