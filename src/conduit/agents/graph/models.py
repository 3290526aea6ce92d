"""Flow data model: nodes, edges and the flow snapshot handed over by the editor."""

from enum import Enum
from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NodeKind(str, Enum):
    """Tag of a node variant."""
    START = "start"
    AGENT = "agent"
    END = "end"
    NOTES = "notes"


class FlowModel(BaseModel):
    """Immutable base model using the editor's camelCase wire names."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Position(FlowModel):
    """Canvas position, kept only for the editor."""
    x: float = 0.0
    y: float = 0.0


class InputSchema(FlowModel):
    """Free-text description of the prompt a flow expects."""
    prompt: Optional[str] = None


class StartNode(FlowModel):
    """Single entry point of a flow."""
    type: Literal["start"] = "start"
    id: str
    label: str = "Start"
    position: Position = Field(default_factory=Position)
    input_schema: Optional[InputSchema] = None


class AgentNode(FlowModel):
    """A configured completion step.

    Both ``temperature`` and ``reasoning_effort`` may be set; the completion
    client decides by model family which one is sent. Reasoning-family models
    get ``reasoning_effort`` and never a temperature, all other models get
    ``temperature`` and ignore ``reasoning_effort``.
    """
    type: Literal["agent"] = "agent"
    id: str
    label: str = "Agent"
    position: Position = Field(default_factory=Position)
    model: str = "gpt-4o-mini"
    system_prompt: str = ""
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    reasoning_effort: Optional[Literal["minimal", "low", "medium", "high"]] = None
    max_tokens: int = Field(default=1000, gt=0)


class EndNode(FlowModel):
    """Terminal marker: agents feeding it produce reportable output."""
    type: Literal["end"] = "end"
    id: str
    label: str = "End"
    position: Position = Field(default_factory=Position)


class NotesNode(FlowModel):
    """Author note. Never executes and never connects."""
    type: Literal["notes"] = "notes"
    id: str
    label: str = "Note"
    position: Position = Field(default_factory=Position)
    content: str = ""


Node = Annotated[
    Union[StartNode, AgentNode, EndNode, NotesNode],
    Field(discriminator="type"),
]


class Edge(FlowModel):
    """Directed connection between two nodes."""
    id: str
    source_node_id: str
    target_node_id: str


class Flow(FlowModel):
    """A user-authored graph of nodes and edges.

    The model accepts transient invalid states (no start node, dangling
    edges); use ``validate_flow`` before executing it.
    """
    id: str
    name: str = "Untitled flow"
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[Node]:
        """Return the node with the given id, or None."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def nodes_of_kind(self, kind: NodeKind) -> List[Node]:
        """Return all nodes of one kind, in flow order."""
        return [node for node in self.nodes if node.type == kind]

    def outgoing(self, node_id: str) -> List[Edge]:
        """Return edges leaving ``node_id``, in flow order."""
        return [edge for edge in self.edges if edge.source_node_id == node_id]

    def to_dict(self) -> dict:
        """Convert to the editor's JSON shape."""
        return self.model_dump(mode="json", by_alias=True)


def load_flow(path: Union[str, Path]) -> Flow:
    """Parse a flow exported by the editor as JSON.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed flow
    """
    return Flow.model_validate_json(Path(path).read_text(encoding="utf-8"))
