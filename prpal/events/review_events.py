from prpal.events.event import Event


class AutoSyncEvent(Event):
    """Refresh a review's PR snapshot in the background if it is due."""

    def __init__(self, review_id: int):
        super().__init__({"review_id": review_id})

    @property
    def review_id(self) -> int:
        return self.data["review_id"]

    def __str__(self):
        return f"AutoSyncEvent: review {self.review_id}"


class LlmReplyEvent(Event):
    """Generate the assistant reply to a user message."""

    job_timeout = 300

    def __init__(self, review_id: int, message_id: int):
        super().__init__({"review_id": review_id, "message_id": message_id})

    @property
    def review_id(self) -> int:
        return self.data["review_id"]

    @property
    def message_id(self) -> int:
        return self.data["message_id"]

    def __str__(self):
        return f"LlmReplyEvent: review {self.review_id}, message {self.message_id}"
