from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    USER = "USER"
    ASSISTANT = "ASSISTANT"

    @classmethod
    def parse(cls, value: str) -> "Role":
        """Accept any casing ("user", "Assistant", ...); raise ValueError otherwise."""
        return cls(value.upper())


@dataclass
class PlainText:
    """A message whose content is shown as-is (user prompts, legacy assistant text)."""

    text: str


@dataclass
class GenerationResult:
    """An assistant turn carrying a file-set snapshot."""

    description: str
    files: dict[str, str] = field(default_factory=dict)
    is_update: bool = False

    def to_response(self) -> dict:
        return {"files": self.files, "description": self.description, "isUpdate": self.is_update}


MessageContent = PlainText | GenerationResult
