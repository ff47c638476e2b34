"""tellbot的领域异常。"""


class TellbotError(Exception):
    """Base exception for tellbot domain errors."""

    pass


class QuotaExceededError(TellbotError):
    """Raised when a sender already has the maximum number of pending messages for a recipient."""

    def __init__(self, sender: str, recipient: str, channel: str, quota: int):
        super().__init__(
            f"{sender} already has {quota} pending messages for {recipient} in {channel}"
        )
        self.sender = sender
        self.recipient = recipient
        self.channel = channel
        self.quota = quota


class SchemaVersionError(TellbotError):
    """Raised when the database was created by a newer tellbot build."""

    pass
