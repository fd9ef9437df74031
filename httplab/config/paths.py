from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class HttplabPaths:
    """Centralizes filesystem paths used by HTTPLab."""

    home: Path = field(default_factory=Path.home)

    @property
    def httplab_dir(self) -> Path:
        return self.home / ".httplab"

    @property
    def logs_dir(self) -> Path:
        return self.httplab_dir / "logs"
