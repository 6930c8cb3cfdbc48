from dataclasses import dataclass, field
from typing import Any


@dataclass
class ToolContext:
    """What every tool handler receives: the API client and the loaded config."""

    client: Any
    config: dict = field(default_factory=dict)

    def section(self, name: str) -> dict:
        return self.config.get(name, {})

    def setting(self, section: str, key: str, default: Any = None) -> Any:
        return self.section(section).get(key, default)
