from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from pathlib import Path


@dataclass(slots=True)
class BinaryDetails:
    """What the last successful update installed."""

    version: str
    path: str
    exec: str

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, text: str) -> "BinaryDetails | None":
        try:
            data = json.loads(text)
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        version, path, exe = data.get("version"), data.get("path"), data.get("exec")
        if not all(isinstance(v, str) and v for v in (version, path, exe)):
            return None
        return cls(version=version, path=path, exec=exe)

    @property
    def exe_path(self) -> Path:
        return Path(self.path)
