"""
Erreurs metier / Business errors.
Levees par les services, traduites en reponses HTTP par main.py.
Raised by services, mapped to HTTP responses in main.py.
"""


class FleetError(Exception):
    """Erreur metier de base / Base business error."""

    status_code = 400
    code = "fleet_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message, "code": self.code}


class ValidationError(FleetError):
    """Entree invalide, aucune ecriture tentee / Invalid input, nothing written."""

    status_code = 422
    code = "validation_error"


class NotFoundError(FleetError):
    """Entite absente pour ce compte / Entity missing for this owner."""

    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id=None):
        label = entity if entity_id is None else f"{entity} {entity_id}"
        super().__init__(f"{label} not found")
        self.entity = entity
        self.entity_id = entity_id


class PartialWriteError(FleetError):
    """Echec d'une etape apres des ecritures / A step failed after earlier writes.

    completed_steps liste les etapes executees avant l'echec ; rolled_back
    indique si la transaction les a annulees.
    """

    status_code = 500
    code = "partial_write"

    def __init__(self, operation: str, completed_steps: list[str], failed_step: str | None,
                 rolled_back: bool = True, cause: Exception | None = None):
        state = "rolled back" if rolled_back else "NOT rolled back"
        super().__init__(
            f"{operation} failed at step '{failed_step}' after {completed_steps} ({state}). "
            "Data may be inconsistent, please refresh and retry."
        )
        self.operation = operation
        self.completed_steps = list(completed_steps)
        self.failed_step = failed_step
        self.rolled_back = rolled_back
        self.cause = cause

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "operation": self.operation,
            "completed_steps": self.completed_steps,
            "failed_step": self.failed_step,
            "rolled_back": self.rolled_back,
        })
        return data


class ConcurrencyConflict(FleetError):
    """Ecriture concurrente sur le meme compteur / Concurrent write on the same counter."""

    status_code = 409
    code = "concurrency_conflict"

    def __init__(self, operation: str, attempts: int):
        super().__init__(
            f"{operation} conflicted with another update {attempts} times. "
            "Data may have changed, please refresh and retry."
        )
        self.operation = operation
        self.attempts = attempts


class ImportRowError(FleetError):
    """Ligne de tableur invalide / Invalid spreadsheet row."""

    status_code = 422
    code = "import_row_error"

    def __init__(self, row: int | None, reason: str):
        prefix = f"row {row}: " if row is not None else ""
        super().__init__(f"{prefix}{reason}")
        self.row = row
        self.reason = reason

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"row": self.row, "reason": self.reason})
        return data
