import logging


class PrivacyFilter(logging.Filter):
    """Keep chat content out of structured logs."""

    BLOCKED_KEYS = {"body", "text", "message_text", "transcript", "sender"}

    def filter(self, record: logging.LogRecord) -> bool:
        for key in self.BLOCKED_KEYS:
            if hasattr(record, key):
                setattr(record, key, "[REDACTED]")
        return True


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # Handler filters also see records propagated from child loggers.
    for handler in logging.getLogger().handlers:
        if not any(isinstance(existing, PrivacyFilter) for existing in handler.filters):
            handler.addFilter(PrivacyFilter())
