"""Ordered storage for generated artifacts."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Protocol

from angle_studio.domain.images import GeneratedArtifact


class ResultStore(Protocol):
    """Interface for the ordered result collection shown in the grid."""

    def replace_all(self, artifacts: Iterable[GeneratedArtifact]) -> None:
        """Discard prior results and store the new ordered list."""

    def prepend(self, artifact: GeneratedArtifact) -> None:
        """Insert an artifact at the front, keeping prior results."""

    def select(self, artifact_id: str) -> GeneratedArtifact | None:
        """Return the artifact with the given id, if present."""

    def list_artifacts(self) -> list[GeneratedArtifact]:
        """Return all artifacts in display order."""

    def clear(self) -> None:
        """Remove all artifacts."""


@dataclass
class InMemoryResultStore(ResultStore):
    """Result store kept in process memory."""

    _artifacts: list[GeneratedArtifact] = field(default_factory=list)

    def replace_all(self, artifacts: Iterable[GeneratedArtifact]) -> None:
        """Replace the stored artifacts, rejecting duplicate ids."""
        incoming = list(artifacts)
        ids = [artifact.id for artifact in incoming]
        if len(set(ids)) != len(ids):
            raise ValueError("Duplicate artifact id in result batch")
        self._artifacts = incoming

    def prepend(self, artifact: GeneratedArtifact) -> None:
        """Insert an artifact at the front of the store."""
        if self.select(artifact.id) is not None:
            raise ValueError(f"Artifact {artifact.id} is already stored")
        self._artifacts.insert(0, artifact)

    def select(self, artifact_id: str) -> GeneratedArtifact | None:
        for artifact in self._artifacts:
            if artifact.id == artifact_id:
                return artifact
        return None

    def list_artifacts(self) -> list[GeneratedArtifact]:
        return list(self._artifacts)

    def clear(self) -> None:
        self._artifacts = []

    def __len__(self) -> int:
        return len(self._artifacts)
