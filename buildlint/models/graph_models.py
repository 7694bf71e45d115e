"""
Property Graph Data Models — Dependencies between property definitions.

MSBuild property names are case-insensitive, so node IDs are casefolded names.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class PropertyNode(BaseModel):
    """A property name and every place it is assigned."""

    id: str = Field(..., description="Casefolded property name")
    name: str = Field(..., description="Name as first written")
    definition_lines: list[int] = Field(default_factory=list)
    definition_indexes: list[int] = Field(
        default_factory=list, description="Document-order indexes of the assignments"
    )


class PropertyEdge(BaseModel):
    """An edge from a using property to a referenced property."""

    source: str = Field(..., description="ID of the property whose value holds the reference")
    target: str = Field(..., description="ID of the referenced property")
    definition_index: int = Field(..., description="Assignment that holds the reference")
    line: int = 0


class PropertyGraph(BaseModel):
    """Reference graph over all property definitions of one document."""

    nodes: dict[str, PropertyNode] = Field(default_factory=dict)
    edges: list[PropertyEdge] = Field(default_factory=list)

    def dependents_of(self, name: str) -> list[str]:
        """IDs of properties whose values reference the given property."""
        key = name.casefold()
        return sorted({e.source for e in self.edges if e.target == key})

    def first_definition_line(self, name: str) -> int | None:
        node = self.nodes.get(name.casefold())
        if node is None or not node.definition_lines:
            return None
        return node.definition_lines[0]

    def is_defined(self, name: str) -> bool:
        return name.casefold() in self.nodes
