"""Result models for agent and flow runs."""

from typing import Any, Dict, Optional
from dataclasses import dataclass, field


@dataclass
class AgentRunResult:
    """Output of a single agent invocation."""
    output: str
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, output: str) -> "AgentRunResult":
        """Build a result for a completed call."""
        return cls(output=output, raw={"provider_response": output})

    @classmethod
    def failure(cls, error: Any) -> "AgentRunResult":
        """Build an error-tagged result."""
        message = str(error) or error.__class__.__name__
        return cls(output=f"Error: {message}", raw={"error": message})

    @property
    def is_error(self) -> bool:
        """Whether the invocation failed."""
        return "error" in self.raw

    @property
    def error(self) -> Optional[str]:
        """Error message, if the invocation failed."""
        return self.raw.get("error")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        raw = {}
        if "provider_response" in self.raw:
            raw["providerResponse"] = self.raw["provider_response"]
        if "error" in self.raw:
            raw["error"] = self.raw["error"]
        return {"output": self.output, "raw": raw}


@dataclass
class FlowRunResult:
    """Outcome of running a flow, keyed by agent id."""
    run_id: str
    agents: Dict[str, AgentRunResult] = field(default_factory=dict)

    @property
    def failed_agents(self) -> Dict[str, AgentRunResult]:
        """Results of agents that failed."""
        return {agent_id: r for agent_id, r in self.agents.items() if r.is_error}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "runId": self.run_id,
            "agents": {agent_id: r.to_dict() for agent_id, r in self.agents.items()},
        }
