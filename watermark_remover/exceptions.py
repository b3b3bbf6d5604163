"""
Error taxonomy shared by every layer.

• InvalidRegionError        – bad selection, skipped by the processor
• DecodeError               – unreadable upload, aborts one image only
• CapabilityUnavailableError – optional engine missing, triggers fallback
• ProcessingFailure         – strategy blew up on one region
• SessionNotFoundError      – unknown image id
"""


class WatermarkRemoverError(Exception):
    """Base class for everything raised by this package."""


class InvalidRegionError(WatermarkRemoverError, ValueError):
    pass


class DecodeError(WatermarkRemoverError, ValueError):
    pass


class CapabilityUnavailableError(WatermarkRemoverError):
    pass


class ProcessingFailure(WatermarkRemoverError):
    def __init__(self, region_index: int, cause: BaseException):
        super().__init__(f"Region #{region_index} failed: {cause}")
        self.region_index = region_index
        self.cause = cause


class SessionNotFoundError(WatermarkRemoverError, KeyError):
    def __str__(self) -> str:
        return f"No image session with id {self.args[0]!r}"
