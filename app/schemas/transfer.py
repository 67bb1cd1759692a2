from pydantic import BaseModel, Field


class ImportRowError(BaseModel):
    """A CSV row that was rejected, with the reason."""
    row: dict
    reason: str


class ImportReport(BaseModel):
    """
    Outcome of one CSV import batch.

    Rows are reported in the order they were read.
    """
    message: str = "Import process finished."
    added: int = 0
    skipped: int = 0
    duplicates: list[str] = Field(default_factory=list)
    invalid: list[ImportRowError] = Field(default_factory=list)
    aborted: bool = False
