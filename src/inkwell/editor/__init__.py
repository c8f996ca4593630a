"""Editor package containing the document model, mode machine and integrity guard."""

from .document_model import CANONICAL_EMPTY_DOCUMENT, EditorMode, EditorState
from .editor import MarkupEditor
from .errors import CapabilityUnavailable, EditorError, IntegrityViolation, ParseFailure, ValidationError
from .history import HistoryManager
from .integrity import CORRUPTION_PREDICATES, IntegrityGuard, RepairOutcome
from .sanitizer import ContentSanitizer, sanitize
from .surface import MemorySurface, RichSurface

__all__ = [
    "CANONICAL_EMPTY_DOCUMENT",
    "CORRUPTION_PREDICATES",
    "CapabilityUnavailable",
    "ContentSanitizer",
    "EditorError",
    "EditorMode",
    "EditorState",
    "HistoryManager",
    "IntegrityGuard",
    "IntegrityViolation",
    "MarkupEditor",
    "MemorySurface",
    "ParseFailure",
    "RepairOutcome",
    "RichSurface",
    "ValidationError",
    "sanitize",
]
