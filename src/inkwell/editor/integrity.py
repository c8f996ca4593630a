"""Detection and repair of leaked raw markup, plus root structure normalization.

Corruption detection is heuristic. A document is flagged when, outside the
raw markup view, some visible text looks like serialized markup (for example
``<span style="letter-spacing: 2px">`` showing up as literal characters).
The predicates live in :data:`CORRUPTION_PREDICATES` and are intentionally
incomplete.

Text inside ``pre``, ``code``, ``kbd``, ``samp`` and ``textarea`` elements is
never inspected: that is where users put markup they want to show as
markup, so literal tags there are content, not corruption.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from bs4 import BeautifulSoup, NavigableString, Tag

from ..services.notifications import NotificationKind, NotificationSink
from .document_model import CANONICAL_EMPTY_DOCUMENT, EditorMode, EditorState
from .errors import IntegrityViolation
from .history import HistoryManager
from .markup import MarkupParser
from .modes import ContentCommitter, ModeController
from .sanitizer import ContentSanitizer
from .surface import RichSurface

__all__ = [
    "IntegrityGuard",
    "RepairOutcome",
    "CorruptionPredicate",
    "CORRUPTION_PREDICATES",
    "BLOCK_TAGS",
    "LITERAL_CONTAINERS",
    "find_leaked_markup",
]

LOGGER = logging.getLogger(__name__)

BLOCK_TAGS: frozenset[str] = frozenset(
    {
        "address", "article", "aside", "blockquote", "details", "dialog", "dd", "div",
        "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2",
        "h3", "h4", "h5", "h6", "header", "hgroup", "hr", "li", "main", "nav", "ol",
        "p", "pre", "section", "table", "ul",
    }
)
LITERAL_CONTAINERS: frozenset[str] = frozenset({"pre", "code", "kbd", "samp", "textarea"})


@dataclass(frozen=True, slots=True)
class CorruptionPredicate:
    """Named test applied to a visible text fragment."""

    name: str
    description: str
    matches: Callable[[str], bool]


def _pattern(regex: str, flags: int = re.IGNORECASE) -> Callable[[str], bool]:
    compiled = re.compile(regex, flags)
    return lambda text: compiled.search(text) is not None


CORRUPTION_PREDICATES: tuple[CorruptionPredicate, ...] = (
    CorruptionPredicate(
        name="spacing-span",
        description="letter/word spacing span emitted by the style commands",
        matches=_pattern(r"<span\s+style\s*=\s*[\"']\s*(?:letter|word)-spacing\s*:"),
    ),
    CorruptionPredicate(
        name="inline-style-opening",
        description="an element opening sequence carrying an inline style attribute",
        matches=_pattern(r"<[a-z][\w-]*\s+[^<>]*?style\s*=\s*[\"']"),
    ),
    CorruptionPredicate(
        name="literal-element-pair",
        description="a complete start/end tag pair shown as text",
        matches=_pattern(r"<([a-z][\w-]*)(?:\s[^<>]*)?>.*?</\1\s*>", re.IGNORECASE | re.DOTALL),
    ),
)


class RepairOutcome(str, Enum):
    CLEAN = "clean"
    SKIPPED = "skipped"
    REINTERPRETED = "reinterpreted"
    RESET = "reset"
    FAILED = "failed"


def _is_plain_text(node: object) -> bool:
    # Comments, doctypes and CDATA subclass NavigableString; only plain text counts.
    return type(node) is NavigableString


def _inside_literal_container(node: NavigableString) -> bool:
    return any(parent.name in LITERAL_CONTAINERS for parent in node.parents if isinstance(parent, Tag))


def find_leaked_markup(
    tree: BeautifulSoup,
    predicates: Iterable[CorruptionPredicate] = CORRUPTION_PREDICATES,
) -> list[NavigableString]:
    """Return the text nodes of ``tree`` that look like serialized markup."""

    active = tuple(predicates)
    leaks: list[NavigableString] = []
    for node in tree.find_all(string=True):
        if not _is_plain_text(node) or "<" not in node:
            continue
        if _inside_literal_container(node):
            continue
        if any(predicate.matches(str(node)) for predicate in active):
            leaks.append(node)
    return leaks


class IntegrityGuard:
    """Detects render-state corruption and keeps root text inside blocks.

    Nothing in here raises past its public methods: internal failures are
    logged, reported as error notifications, and the editor state is left
    at its last consistent values.
    """

    def __init__(
        self,
        surface: RichSurface,
        state: EditorState,
        history: HistoryManager,
        modes: ModeController,
        *,
        parser: MarkupParser,
        sanitizer: ContentSanitizer,
        notifier: NotificationSink,
        commit: ContentCommitter,
        predicates: Iterable[CorruptionPredicate] = CORRUPTION_PREDICATES,
    ) -> None:
        self._surface = surface
        self._state = state
        self._history = history
        self._modes = modes
        self._parser = parser
        self._sanitizer = sanitizer
        self._notifier = notifier
        self._commit = commit
        self._predicates = tuple(predicates)

    @property
    def predicates(self) -> tuple[CorruptionPredicate, ...]:
        return self._predicates

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------
    def is_corrupted(self, markup: str) -> bool:
        tree = self._parser.parse(markup).tree
        return bool(find_leaked_markup(tree, self._predicates))

    def check_and_repair(self) -> RepairOutcome:
        """Inspect the surface and repair leaked markup if any is found."""

        if self._state.mode is EditorMode.RAW_MARKUP:
            return RepairOutcome.SKIPPED
        try:
            markup = self._surface.get_markup()
            parsed = self._parser.parse(markup)
            leaks = find_leaked_markup(parsed.tree, self._predicates)
            if not leaks:
                if self.normalize_structure():
                    self._commit(self._surface.get_markup(), normalize=False)
                return RepairOutcome.CLEAN

            violation = IntegrityViolation("Detected corrupted content. Fixing...")
            LOGGER.warning("Detected %d text node(s) carrying leaked markup", len(leaks))
            self._notify(violation.message, violation.kind)
            repaired = self._reinterpret(parsed.tree, leaks, baseline=markup, baseline_elements=parsed.element_count)
            if repaired is None:
                self._full_reset()
                self._notify("Content could not be recovered; editor was reset", NotificationKind.ERROR)
                return RepairOutcome.RESET

            self._modes.force_normal()
            current = self._history.current
            if current is not None and self.is_corrupted(current):
                self._history.replace_current(self._commit(repaired, record=False))
            else:
                self._commit(repaired)
            self._notify("Content fixed successfully", NotificationKind.SUCCESS)
            return RepairOutcome.REINTERPRETED
        except Exception:
            LOGGER.exception("Failed to fix corrupted content")
            self._notify("Failed to fix corrupted content", NotificationKind.ERROR)
            return RepairOutcome.FAILED

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------
    def reset(self) -> bool:
        """Replace the document with the canonical empty one and rebaseline."""

        try:
            self._full_reset()
        except Exception:
            LOGGER.exception("Failed to reset editor")
            self._notify("Failed to reset editor", NotificationKind.ERROR)
            return False
        return True

    # ------------------------------------------------------------------
    # Structure normalization
    # ------------------------------------------------------------------
    def normalize_structure(self) -> bool:
        """Wrap root-level runs of loose text in ``<p>`` elements.

        A run is a maximal sequence of root-level text and inline elements;
        runs made only of whitespace are left alone, and so are block
        elements, comments and declarations. Returns True when the surface
        markup changed.
        """

        tree = self._parser.parse(self._surface.get_markup()).tree
        runs = _loose_runs(tree)
        if not runs:
            return False
        for run in runs:
            _wrap_run(tree, run)
        self._surface.set_markup(self._parser.serialize(tree))
        LOGGER.debug("Wrapped %d loose root-level run(s)", len(runs))
        self._notify("Content structure fixed", NotificationKind.INFO)
        return True

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _reinterpret(
        self,
        tree: BeautifulSoup,
        leaks: list[NavigableString],
        *,
        baseline: str,
        baseline_elements: int,
    ) -> str | None:
        replaced = 0
        for node in leaks:
            fragment = self._parser.fragment(str(node))
            if not any(isinstance(item, Tag) for item in fragment):
                continue
            node.replace_with(*fragment)
            replaced += 1
        if not replaced:
            return None
        candidate = self._parser.serialize(tree)
        reparsed = self._parser.parse(candidate)
        if reparsed.element_count <= baseline_elements:
            return None
        if find_leaked_markup(reparsed.tree, self._predicates):
            return None
        if self._sanitizer.sanitize(candidate) == self._sanitizer.sanitize(baseline):
            return None
        return candidate

    def _full_reset(self) -> None:
        self._surface.set_markup(CANONICAL_EMPTY_DOCUMENT)
        self._history.clear()
        self._state.reset()
        self._modes.force_normal()
        baseline = self._sanitizer.sanitize(self._surface.get_markup())
        self._history.record_if_changed(baseline)
        LOGGER.info("Editor reset to the canonical empty document (generation %d)", self._state.generation)

    def _notify(self, message: str, kind: NotificationKind) -> None:
        try:
            self._notifier.notify(message, kind)
        except Exception:
            LOGGER.debug("Notification sink failed for %r", message, exc_info=True)


def _loose_runs(tree: BeautifulSoup) -> list[list]:
    runs: list[list] = []
    current: list = []
    for child in list(tree.contents):
        inline = _is_plain_text(child) or (isinstance(child, Tag) and child.name not in BLOCK_TAGS)
        if inline:
            current.append(child)
            continue
        if current:
            runs.append(current)
        current = []
    if current:
        runs.append(current)
    return [_trim_run(run) for run in runs if _has_loose_text(run)]


def _has_loose_text(run: list) -> bool:
    return any(_is_plain_text(node) and node.strip() for node in run)


def _trim_run(run: list) -> list:
    start = 0
    end = len(run)
    while start < end and _is_plain_text(run[start]) and not run[start].strip():
        start += 1
    while end > start and _is_plain_text(run[end - 1]) and not run[end - 1].strip():
        end -= 1
    return run[start:end]


def _wrap_run(tree: BeautifulSoup, run: list) -> None:
    first = run[0]
    block = tree.new_tag("p")
    first.insert_before(block)
    for node in run:
        block.append(node.extract())
    head = block.contents[0]
    if _is_plain_text(head):
        head.replace_with(NavigableString(head.lstrip()))
    tail = block.contents[-1]
    if _is_plain_text(tail):
        tail.replace_with(NavigableString(tail.rstrip()))
