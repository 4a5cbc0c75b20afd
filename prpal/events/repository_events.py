from prpal.events.event import Event


class RepositorySyncEvent(Event):
    """Sync every pull request of one repository."""

    def __init__(self, repository_id: int):
        super().__init__({"repository_id": repository_id})

    @property
    def repository_id(self) -> int:
        return self.data["repository_id"]

    def __str__(self):
        return f"RepositorySyncEvent: repository {self.repository_id}"


class SyncAllRepositoriesEvent(Event):
    """Fan out a RepositorySyncEvent for every known repository."""

    job_timeout = 900

    def __init__(self):
        super().__init__()

    def __str__(self):
        return "SyncAllRepositoriesEvent"
