from typing import Any, Dict, Optional


class Event:
    """Unit of background work handed to the dispatcher.

    ``data`` must stay picklable: in redis modes the event travels through rq.
    """

    # Seconds an rq worker may spend on the job before killing it.
    job_timeout: int = 180

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self.data = data or {}

    def __str__(self):
        return f"{self.__class__.__name__}: {self.data}"
