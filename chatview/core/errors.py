"""Failures raised while importing a chat export.

Every error carries a message that can be shown to the user as-is.
"""

GB = 1024 * 1024 * 1024
MB = 1024 * 1024


def format_file_size(size: int) -> str:
    if size >= GB:
        return f"{size / GB:.1f} GB"
    return f"{size / MB:.1f} MB"


class ChatImportError(ValueError):
    """Base class for export ingestion failures."""


class InputTooLargeError(ChatImportError):
    def __init__(self, size: int, limit: int, message: str | None = None) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            message or f"File too large ({format_file_size(size)}). Maximum allowed is {format_file_size(limit)}."
        )


class DecompressedSizeError(InputTooLargeError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            size,
            limit,
            "ZIP decompressed content exceeds the safety limit "
            f"({format_file_size(size)} > {format_file_size(limit)}). The file may be a zip bomb.",
        )


class ArchiveInvalidError(ChatImportError):
    pass


class TooManyEntriesError(ArchiveInvalidError):
    def __init__(self, count: int, limit: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(f"ZIP contains too many files ({count}). Maximum allowed is {limit}.")
