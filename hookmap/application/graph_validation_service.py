"""Service for graph validation logic."""
from __future__ import annotations

from hookmap.domain.errors import ValidationError

MAX_GRAPH_NAME_LENGTH = 255


class GraphValidationService:
    """Validates graph operations."""

    def validate_name(self, name: str | None) -> str:
        """Validate and normalize graph name."""
        if not name or not name.strip():
            raise ValidationError("Graph name is required and cannot be empty")
        name = name.strip()
        if len(name) > MAX_GRAPH_NAME_LENGTH:
            raise ValidationError(f"Graph name cannot exceed {MAX_GRAPH_NAME_LENGTH} characters")
        return name
