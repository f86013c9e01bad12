"""
Extraction of machine types from Recommender records.

The Recommender has delivered the proposed machine type in two shapes:
embedded in the free-text description ("... from e2-medium to e2-small.")
or as a test/replace operation pair in the first operation group. Both are
owned by the Recommender service and may change without notice, so each
shape lives behind the same small interface and parse failures raise
RecommendationParseError instead of producing a bogus machine type.
"""

from typing import Any, Protocol

from .exceptions import RecommendationParseError

FROM_MARKER = "from "
TO_MARKER = " to "


def _operations(recommendation: Any) -> list[Any]:
    groups = recommendation.content.operation_groups
    if not groups:
        return []
    return list(groups[0].operations)


def _last_segment(path: str) -> str:
    return path.rstrip("/").split("/")[-1]


def instance_name_of(recommendation: Any) -> str:
    """Name of the instance a recommendation targets (last resource path segment)."""
    operations = _operations(recommendation)
    if not operations or not operations[0].resource:
        raise RecommendationParseError(
            f"Recommendation {recommendation.name} has no target resource"
        )
    return _last_segment(operations[0].resource)


class MachineTypeParser(Protocol):
    def parse_current_type(self, recommendation: Any) -> str: ...

    def parse_recommended_type(self, recommendation: Any) -> str: ...

    def target_machine_type(self, recommendation: Any, zone: str) -> str: ...


class DescriptionParser:
    """Reads "from <current> to <recommended>" out of the description."""

    def _markers(self, recommendation: Any) -> tuple[str, int, int]:
        description = recommendation.description or ""
        start = description.find(FROM_MARKER)
        end = description.find(TO_MARKER, start + len(FROM_MARKER)) if start >= 0 else -1
        if start < 0 or end < 0:
            raise RecommendationParseError(
                f"No machine types in description: {description!r}"
            )
        return description, start + len(FROM_MARKER), end

    def parse_current_type(self, recommendation: Any) -> str:
        description, start, end = self._markers(recommendation)
        current = description[start:end].strip()
        if not current:
            raise RecommendationParseError(
                f"Empty current machine type in description: {description!r}"
            )
        return current

    def parse_recommended_type(self, recommendation: Any) -> str:
        description, _start, end = self._markers(recommendation)
        # First word after the marker, without sentence punctuation
        words = description[end + len(TO_MARKER) :].split()
        recommended = words[0].rstrip(".,;:!") if words else ""
        if not recommended:
            raise RecommendationParseError(
                f"Empty recommended machine type in description: {description!r}"
            )
        return recommended

    def target_machine_type(self, recommendation: Any, zone: str) -> str:
        return f"zones/{zone}/machineTypes/{self.parse_recommended_type(recommendation)}"


class StructuredParser:
    """Reads the test (value_matcher) and replace (value) operations."""

    def _pattern(self, recommendation: Any) -> str:
        operations = _operations(recommendation)
        pattern = operations[0].value_matcher.matches_pattern if operations else ""
        if not pattern:
            raise RecommendationParseError(
                f"Recommendation {recommendation.name} has no machine type matcher"
            )
        return str(pattern)

    def _value(self, recommendation: Any) -> str:
        operations = _operations(recommendation)
        value = operations[1].value if len(operations) > 1 else None
        if not value or not isinstance(value, str):
            raise RecommendationParseError(
                f"Recommendation {recommendation.name} has no machine type value"
            )
        return value

    def parse_current_type(self, recommendation: Any) -> str:
        return _last_segment(self._pattern(recommendation))

    def parse_recommended_type(self, recommendation: Any) -> str:
        return _last_segment(self._value(recommendation))

    def target_machine_type(self, recommendation: Any, zone: str) -> str:
        return self._value(recommendation)


def select_parser(recommendation: Any) -> MachineTypeParser:
    """Picks the structured parser when the operation pair is populated."""
    operations = _operations(recommendation)
    if (
        len(operations) > 1
        and operations[0].value_matcher.matches_pattern
        and operations[1].value
    ):
        return StructuredParser()
    return DescriptionParser()
