"""
API Request/Response Schemas using Pydantic.

Structure of HTTP requests and responses for the hookmap editor API.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, List, Optional, Any

# Graph schemas
class GraphCreate(BaseModel):
    name: str = Field(..., description="Name of the graph", min_length=1, max_length=255)

class GraphSummary(BaseModel):
    graph_id: str = Field(..., description="Unique identifier for the graph")
    name: str = Field(..., description="Name of the graph")
    status: str = Field("DRAFT", description="DRAFT, ACTIVE or PAUSED")
    version: Optional[int] = Field(None, description="Version bumped on every explicit save")
    compiled_at: Optional[str] = Field(None, description="ISO timestamp of the last successful deploy")
    deploy_fingerprint: Optional[str] = Field(None, description="Fingerprint of the deployed trigger")

class GraphDeleteResponse(BaseModel):
    success: bool = Field(default=True, description="Whether the deletion was successful")
    graph_id: str = Field(..., description="ID of the deleted graph")

# Editing schemas
class PositionSchema(BaseModel):
    x: float = Field(0.0, description="Horizontal editor coordinate")
    y: float = Field(0.0, description="Vertical editor coordinate")

class NodeCreate(BaseModel):
    type: str = Field(..., description="Registry key of the node type")
    data: Dict[str, Any] = Field(default_factory=dict, description="Initial configuration values")
    position: Optional[PositionSchema] = Field(None, description="Where the node was picked")
    from_palette: bool = Field(False, description="Take initial data from the palette entry")

class NodeDataPatch(BaseModel):
    patch: Dict[str, Any] = Field(..., description="Fields merged into the node's data")

class ChangeBatch(BaseModel):
    changes: List[Dict[str, Any]] = Field(..., description="Editor change records applied as one batch")

class Connection(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(..., description="ID of the source node")
    target: str = Field(..., description="ID of the target node")
    source_handle: Optional[str] = Field(None, alias="sourceHandle", description="Output port name")
    target_handle: Optional[str] = Field(None, alias="targetHandle", description="Input port key")

    def as_edge(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

class ConnectionCheck(BaseModel):
    ok: bool = Field(..., description="Whether the connection may be made")
    reason: Optional[str] = Field(None, description="Why the connection is refused")

class PauseRequest(BaseModel):
    paused: bool = Field(..., description="True to pause triggers, False to resume")

class PaletteOptionResponse(BaseModel):
    type: str
    label: str
    icon: str = ""
    can_add: bool = Field(..., description="False when the per-graph instance cap is reached")
    reason: Optional[str] = None

# Session state
class SessionStateResponse(BaseModel):
    graph: Dict[str, Any] = Field(..., description="Selected graph record")
    definition: Dict[str, Any] = Field(..., description="Current sanitized definition")
    dirty: bool = Field(..., description="Live graph differs from the last saved one")
    show_deploy: bool = Field(..., description="A deploy would change what is running")
    compiling: bool = Field(False, description="A deploy is in flight")
    can_toggle_pause: bool = Field(False, description="Pause/resume toggle is available")
    over_limit: bool = Field(False, description="Usage has reached the account limit")
    autosave_pending: bool = Field(False, description="A positional autosave is scheduled")
    last_error: Optional[str] = Field(None, description="Message of the last failed action")
    saved_fingerprint: Optional[str] = Field(None, description="Fingerprint of the saved definition")

# Usage
class UsageResponse(BaseModel):
    used: int = Field(0, description="Events consumed in the current cycle")
    limit: int = Field(100, description="Events allowed per cycle")
    over_limit: bool = Field(False, description="used >= limit")
