"""Exception types raised by the MBTiles writer."""


class MbtilesError(Exception):
    """Base class for all container errors."""


class SchemaError(MbtilesError):
    """The container could not be created or has incompatible tables."""


class WriteError(MbtilesError):
    """A batch of tiles could not be inserted or committed."""


class TuningError(MbtilesError):
    """A write-tuning pragma could not be applied. Never fatal."""

    def __init__(self, pragma: str, message: str) -> None:
        super().__init__(f"PRAGMA {pragma}: {message}")
        self.pragma = pragma


class EncodingError(MbtilesError):
    """Malformed vector-layer descriptors passed to the JSON encoder."""


__all__ = ["MbtilesError", "SchemaError", "WriteError", "TuningError", "EncodingError"]
