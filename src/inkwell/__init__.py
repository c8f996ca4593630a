"""Document state and integrity engine for an embedded rich-text editor."""

from .editor.editor import MarkupEditor
from .editor.document_model import EditorMode, EditorState

__all__ = ["MarkupEditor", "EditorMode", "EditorState", "__version__"]

__version__ = "0.3.0"
