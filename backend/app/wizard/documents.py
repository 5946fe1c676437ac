"""Document attachment slots and the gate that guards them.

Selected files travel beside the draft as opaque handles; they are never
persisted with the draft and never serialized into the submission payload.
Format and size hints are shown to the applicant but enforced by the
upload service, not here.
"""

from dataclasses import dataclass, field
from pathlib import Path

ACCEPTED_FORMATS = ("PDF", "JPG", "PNG")
MAX_FILE_SIZE_MB = 5

REQUIRED_SLOTS = ("id_document", "proof_of_address")
SLOT_LABELS = {
    "id_document": "ID document",
    "proof_of_address": "Proof of address",
    "additional_documents": "Additional documents",
}


@dataclass(frozen=True)
class FileHandle:
    filename: str
    size: int = 0
    content_type: str | None = None
    path: Path | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> "FileHandle":
        p = Path(path)
        return cls(filename=p.name, size=p.stat().st_size, path=p)


@dataclass
class DocumentSlots:
    id_document: list[FileHandle] = field(default_factory=list)
    proof_of_address: list[FileHandle] = field(default_factory=list)
    additional_documents: list[FileHandle] = field(default_factory=list)

    def slot(self, name: str) -> list[FileHandle]:
        if name not in SLOT_LABELS:
            raise KeyError(f"Unknown document slot: {name}")
        return getattr(self, name)

    def attach(self, name: str, handle: FileHandle) -> None:
        self.slot(name).append(handle)

    def detach(self, name: str, index: int) -> FileHandle:
        return self.slot(name).pop(index)

    def counts(self) -> dict[str, int]:
        return {name: len(self.slot(name)) for name in SLOT_LABELS}

    def clear(self) -> None:
        for name in SLOT_LABELS:
            self.slot(name).clear()


def missing_documents(documents: DocumentSlots) -> list[str]:
    """Required slots that hold no file."""
    return [name for name in REQUIRED_SLOTS if not documents.slot(name)]


def has_required_documents(documents: DocumentSlots) -> bool:
    return not missing_documents(documents)
