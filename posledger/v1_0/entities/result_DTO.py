from dataclasses import dataclass

@dataclass(frozen=True, slots=True)
class NotFound:
    """Returned (never raised) when a referenced record does not exist."""
    resource: str
    id: int

    @property
    def message(self) -> str:
        return f"{self.resource} with ID {self.id} not found"

@dataclass(slots=True)
class DeleteResultDTO:
    success: bool
    message: str
