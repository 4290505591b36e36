from __future__ import annotations


class HolderPickerError(Exception):
    """Base class for every error raised by the holder picker."""


class InvalidAddress(HolderPickerError):
    pass


class UpstreamUnavailable(HolderPickerError):
    """The RPC node could not supply data the draw cannot do without."""


class MetadataUnavailable(HolderPickerError):
    """Token name/symbol could not be resolved. Always recovered locally."""


class NoEligibleHolders(HolderPickerError):
    def __init__(self, message: str = "No eligible token holders found.") -> None:
        super().__init__(message)


class MalformedAccountData(HolderPickerError):
    pass
