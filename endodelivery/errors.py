from __future__ import annotations


class NotFoundError(LookupError):
    """Entità referenziata assente (goal, achievement, materiale, ...) -> HTTP 404."""

    def __init__(self, entity: str, entity_id: object) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found")
