"""Code-block extraction and suggestion application for assistant replies."""

import posixpath
import re
from typing import Iterable

from .core import CodeSuggestion, ProjectFile

_FENCE_RE = re.compile(r"```([\w+#.-]*)[ \t]*\n(.*?)```", re.DOTALL)
_TYPE_RE = re.compile(r"\b(?:class|interface|enum|record)\s+(\w+)")


def extract_code_blocks(text: str) -> list[tuple[str, str]]:
    """Return ``(language, code)`` for each fenced block in ``text``.

    Blocks without a language tag report an empty language. Trailing
    newlines inside the fence are dropped.
    """
    return [(lang.lower(), code.rstrip("\n")) for lang, code in _FENCE_RE.findall(text)]


def suggest_edits(text: str, files: Iterable[ProjectFile]) -> tuple[CodeSuggestion, ...]:
    """Turn fenced blocks that redefine a project type into whole-file suggestions.

    A block targets the file named after the first class, interface, enum or
    record it declares. Blocks naming no project file, or matching the file
    exactly, are ignored.
    """
    by_type: dict[str, ProjectFile] = {}
    for f in files:
        by_type.setdefault(posixpath.splitext(f.name)[0], f)

    suggestions = []
    for _, code in extract_code_blocks(text):
        match = _TYPE_RE.search(code)
        target = by_type.get(match.group(1)) if match else None
        if target is None or not target.content or target.content == code:
            continue
        suggestions.append(CodeSuggestion(
            file_path=target.path,
            original_code=target.content,
            suggested_code=code,
            description=f"Update {target.name}",
            start_line=1,
            end_line=target.content.count("\n") + 1,
        ))
    return tuple(suggestions)


def apply_suggestion(content: str, suggestion: CodeSuggestion) -> str | None:
    """Return ``content`` with the suggestion applied, or None if it does not fit."""
    if not suggestion.original_code:
        return None
    if suggestion.original_code not in content:
        return None
    return content.replace(suggestion.original_code, suggestion.suggested_code, 1)


def format_shared_files(files: list[tuple[str, str]]) -> str:
    """Build the chat prompt used to share uploaded files with the assistant."""
    blocks = "\n\n".join(f"File: {name}\n```\n{content}\n```" for name, content in files)
    return f"I'm sharing these files with you to help with my mod development:\n\n{blocks}"
