"""Typed failures raised across the recognition and coaching pipeline."""


class DetectionError(Exception):
    """Base class for image detection failures."""


class DetectionTransportError(DetectionError):
    """The detection service could not be reached or rejected our credentials."""


class ImageUnreadableError(DetectionError):
    """The image payload could not be read or decoded."""


class LookupTransportError(Exception):
    """The nutrition lookup failed at the transport level."""

    def __init__(self, query: str, detail: str) -> None:
        super().__init__(f"Nutrition lookup failed for {query!r}: {detail}")
        self.query = query
        self.detail = detail


class NoNutritionMatch(Exception):
    """Every resolution strategy came back empty for a label."""

    def __init__(self, label: str) -> None:
        super().__init__(f"No nutrition data for {label!r}")
        self.label = label


class ReasoningUnavailable(Exception):
    """The remote coach could not produce a usable reply."""


class SupersededError(Exception):
    """A newer request for the same event replaced this one."""

    def __init__(self, event_key: str) -> None:
        super().__init__(f"Request for {event_key!r} was superseded")
        self.event_key = event_key
