"""Exceptions raised by slot_finder"""


class SlotFinderError(Exception):
    """Base class for every error raised by this package"""


class EncodingError(SlotFinderError, ValueError):
    """A value does not fit its declared ABI type, or the type is unsupported"""


class LayoutError(SlotFinderError, ValueError):
    """A packed-word layout is internally inconsistent"""


class SlotNotFound(SlotFinderError):
    """No candidate base slot produced the expected storage word"""

    def __init__(self, candidates, expected):
        self.candidates = list(candidates)
        self.expected = expected
        if self.candidates:
            where = f"{min(self.candidates)}..{max(self.candidates)}"
        else:
            where = "an empty range"
        super().__init__(
            f"no base slot in {where} holds 0x{bytes(expected).hex()}"
        )


class ReaderFailure(SlotFinderError):
    """The storage transport could not return a word"""
