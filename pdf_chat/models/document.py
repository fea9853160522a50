"""
Document model for an uploaded PDF and its extracted text.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

@dataclass(frozen=True)
class Document:
    """Document model representing an uploaded PDF after text extraction."""
    filename: str
    raw_text: str
    file_size: int = 0
    page_count: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def word_count(self) -> int:
        return len(self.raw_text.split())

    def to_dict(self) -> dict:
        """Convert document to dictionary format."""
        return {
            "id": self.id,
            "filename": self.filename,
            "raw_text": self.raw_text,
            "file_size": self.file_size,
            "page_count": self.page_count,
            "created_at": self.created_at.isoformat()
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Document':
        """Create document from dictionary format."""
        return cls(
            id=data["id"],
            filename=data["filename"],
            raw_text=data["raw_text"],
            file_size=data.get("file_size", 0),
            page_count=data.get("page_count"),
            created_at=datetime.fromisoformat(data["created_at"])
        )
