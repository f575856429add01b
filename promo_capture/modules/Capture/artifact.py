from dataclasses import dataclass, field


@dataclass(frozen=True)
class Artifact:
    """The finalized recording: bytes plus the format label they declare."""

    data: bytes = field(repr=False)
    mime_type: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def size_mb(self) -> float:
        return self.size / (1024 * 1024)

    def relabel(self, mime_type: str) -> "Artifact":
        """Return the same bytes under a different label. No re-encoding."""
        if mime_type == self.mime_type:
            return self
        return Artifact(self.data, mime_type)

    def __repr__(self) -> str:
        return f"Artifact(size={self.size}, mime_type={self.mime_type!r})"
