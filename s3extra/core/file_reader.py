"""Local file discovery — glob resolution and concurrent hashing.

Patterns support ``*``, recursive ``**`` and ``{a,b}`` brace alternation,
rooted at the working directory (or an explicit root). Every matched file
is read and hashed as its own unit of work; a single consumer collects the
results, keyed by relative POSIX path.
"""

from __future__ import annotations

import concurrent.futures
import glob
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from s3extra.core.context import OperationContext
from s3extra.core.errors import FileReadError, NoMatchError, OperationCancelledError
from s3extra.core.hasher import sha256_hex
from s3extra.models.fileset import MatchedFile

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Pattern resolution
# ----------------------------------------------------------------------


def _split_alternatives(body: str) -> list[str]:
    """Split a brace body on commas that are not nested in inner braces."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in body:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        elif ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternation into plain glob patterns.

    Nested groups are expanded recursively. A group without a top-level
    comma (``{a}``) or an unbalanced brace is kept literally. Order follows
    the alternatives as written; duplicates are dropped.
    """
    depth = 0
    start = -1
    for index, ch in enumerate(pattern):
        if ch == "{":
            if depth == 0:
                start = index
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth:
                continue
            alternatives = _split_alternatives(pattern[start + 1:index])
            if len(alternatives) < 2:
                continue
            head, tail = pattern[:start], pattern[index + 1:]
            expanded: list[str] = []
            for alternative in alternatives:
                for candidate in expand_braces(head + alternative + tail):
                    if candidate not in expanded:
                        expanded.append(candidate)
            return expanded
    return [pattern]


def match_paths(pattern: str, root: Path) -> list[str]:
    """Resolve *pattern* under *root* to sorted, relative POSIX file paths.

    Dot-files and dot-directories match like any other name.
    """
    matches: set[str] = set()
    for alternative in expand_braces(pattern):
        for found in glob.glob(alternative, root_dir=root, recursive=True, include_hidden=True):
            if (root / found).is_file():
                matches.add(Path(found).as_posix())
    return sorted(matches)


# ----------------------------------------------------------------------
# Loading
# ----------------------------------------------------------------------


def _load(root: Path, relative: str, context: OperationContext) -> MatchedFile:
    context.check()
    try:
        data = (root / relative).read_bytes()
    except OSError as exc:
        raise FileReadError(relative, exc) from exc
    digest = sha256_hex(data)
    logger.debug("Read %s (%d bytes, sha256=%s)", relative, len(data), digest[:12])
    return MatchedFile(path=relative, digest=digest, data=data)


def discover_and_load(
    pattern: str,
    *,
    root: Path | str | None = None,
    context: OperationContext | None = None,
    max_workers: int | None = None,
) -> dict[str, MatchedFile]:
    """Match *pattern* and load every matching file concurrently.

    Parameters
    ----------
    pattern:
        Glob pattern relative to *root*.
    root:
        Directory the pattern is rooted at. Defaults to the working directory.
    context:
        Cancellation/deadline shared with the rest of the operation.
    max_workers:
        Thread cap. ``None`` uses the executor's default.

    Returns
    -------
    dict:
        ``relative path -> MatchedFile``; never empty.

    Raises
    ------
    NoMatchError
        Nothing matched the pattern.
    FileReadError
        A matched file could not be read. Partial results are discarded.
    OperationCancelledError
        The operation was cancelled or ran past its deadline.
    """
    base = Path(root) if root is not None else Path.cwd()
    context = context or OperationContext()

    paths = match_paths(pattern, base)
    if not paths:
        raise NoMatchError(pattern)
    logger.info("Pattern %r matched %d file(s) under %s", pattern, len(paths), base)

    files: dict[str, MatchedFile] = {}
    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="s3extra-read")
    try:
        futures = [executor.submit(_load, base, relative, context) for relative in paths]
        try:
            for future in as_completed(futures, timeout=context.remaining()):
                matched = future.result()
                files[matched.path] = matched
        except concurrent.futures.TimeoutError as exc:
            raise OperationCancelledError("Operation deadline exceeded") from exc
    finally:
        executor.shutdown(wait=True, cancel_futures=True)

    return files
