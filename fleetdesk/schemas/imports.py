"""Schemas import tableur / Spreadsheet import schemas."""

from pydantic import BaseModel


class ImportFailure(BaseModel):
    row: int
    reason: str


class ImportResult(BaseModel):
    inserted: int
    failed: list[ImportFailure] = []
