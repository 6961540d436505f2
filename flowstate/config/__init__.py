"""FlowState configuration."""

from flowstate.config.settings import Settings

__all__ = ["Settings"]
