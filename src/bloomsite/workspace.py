"""Editable workspace state: the file set shown in the editor plus the chat transcript."""

from dataclasses import dataclass, field

from .agent.content import GenerationResult
from .agent.history import DisplayHistory
from .config import DEFAULT_ACTIVE_FILE


@dataclass
class Workspace:
    files: dict[str, str] = field(default_factory=dict)
    active_file: str = DEFAULT_ACTIVE_FILE
    messages: list[dict] = field(default_factory=list)

    @classmethod
    def from_history(cls, history: DisplayHistory) -> "Workspace":
        """Rebuild a workspace from a conversation's recovered display history."""
        files = dict(history.files or {})
        return cls(
            files=files,
            active_file=next(iter(files), DEFAULT_ACTIVE_FILE),
            messages=[{"role": m["role"], "content": m["content"]} for m in history.messages],
        )

    def apply_result(self, prompt: str, result: GenerationResult) -> None:
        """Merge (update) or replace (fresh) the file set and record the round in the chat."""
        if result.is_update:
            self.files = {**self.files, **result.files}
        else:
            self.files = dict(result.files)

        if self.active_file not in self.files:
            self.active_file = next(iter(result.files), DEFAULT_ACTIVE_FILE)

        self.messages.append({"role": "user", "content": prompt})
        self.messages.append({"role": "assistant", "content": result.description})

    def apply_error(self, prompt: str, error: str) -> None:
        self.messages.append({"role": "user", "content": prompt})
        self.messages.append({"role": "assistant", "content": f"Error: {error}"})

    def apply_response(self, prompt: str, body: dict) -> None:
        """Apply a /api/generate response body, successful or not."""
        if body.get("success"):
            data = body["data"]
            result = GenerationResult(
                description=data["description"],
                files=data["files"],
                is_update=bool(data.get("isUpdate", False)),
            )
            self.apply_result(prompt, result)
        else:
            self.apply_error(prompt, body.get("error") or "Unknown error")

    def on_file_change(self, path: str, content: str) -> None:
        self.files[path] = content

    def on_file_select(self, path: str) -> bool:
        if path not in self.files:
            return False
        self.active_file = path
        return True


def build_file_tree(files: dict[str, str]) -> list[dict]:
    """Nest flat paths into folders; folders sort before files, each group by name."""
    root: dict = {}
    for path in files:
        parts = path.split("/")
        level = root
        for part in parts[:-1]:
            entry = level.get(part)
            if entry is None or entry["type"] != "folder":
                entry = level[part] = {"type": "folder", "children": {}}
            level = entry["children"]
        level[parts[-1]] = {"type": "file", "path": path}
    return _tree_nodes(root, "")


def _tree_nodes(level: dict, prefix: str) -> list[dict]:
    nodes = []
    for name, entry in sorted(level.items(), key=lambda kv: (kv[1]["type"] != "folder", kv[0])):
        if entry["type"] == "folder":
            full_path = f"{prefix}/{name}" if prefix else name
            nodes.append(
                {
                    "name": name,
                    "path": full_path,
                    "type": "folder",
                    "children": _tree_nodes(entry["children"], full_path),
                }
            )
        else:
            nodes.append({"name": name, "path": entry["path"], "type": "file"})
    return nodes
