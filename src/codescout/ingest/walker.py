"""Directory walker: eligible-file discovery and a bounded tree overview."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

DEFAULT_IGNORED_DIRS: frozenset[str] = frozenset(
    [
        ".git",
        ".hg",
        ".svn",
        "target",
        "node_modules",
        ".next",
        "dist",
        "build",
        ".idea",
        ".vscode",
        ".cache",
        "venv",
        ".venv",
        "__pycache__",
        ".mypy_cache",
        ".pytest_cache",
        ".tox",
    ]
)

DEFAULT_EXTENSIONS: frozenset[str] = frozenset(
    [
        ".py", ".rs", ".go", ".java", ".kt", ".c", ".h", ".cpp", ".hpp",
        ".js", ".jsx", ".ts", ".tsx", ".rb", ".php", ".sh",
        ".md", ".rst", ".txt",
        ".toml", ".json", ".yaml", ".yml", ".graphql",
    ]
)


class DirectoryWalker:
    """Enumerate files under *root* that are worth indexing.

    Directories whose base name is in ``ignored_dirs`` are never entered and
    symlinked directories are not followed. Only files whose extension is in
    ``extensions`` are returned.
    """

    def __init__(
        self,
        root: Path | str,
        ignored_dirs: Iterable[str] = DEFAULT_IGNORED_DIRS,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    ) -> None:
        self.root = Path(root)
        self.ignored_dirs = frozenset(ignored_dirs)
        self.extensions = frozenset(_normalise_ext(e) for e in extensions)

    def collect_files(self) -> list[Path]:
        """Return all eligible files under root, depth-unbounded, in sorted order.

        Raises:
            OSError: If the root itself cannot be listed. Unreadable
                subdirectories are skipped.
        """
        files: list[Path] = []
        self._collect(self.root, files, entries=sorted(self.root.iterdir()))
        return files

    def _collect(self, directory: Path, files: list[Path], entries: list[Path] | None = None) -> None:
        if entries is None:
            try:
                entries = sorted(directory.iterdir())
            except OSError:
                return
        for entry in entries:
            if entry.is_dir():
                if entry.is_symlink() or entry.name in self.ignored_dirs:
                    continue
                self._collect(entry, files)
            elif entry.is_file() and self.is_eligible(entry):
                files.append(entry)

    def is_eligible(self, path: Path) -> bool:
        return path.suffix.lower() in self.extensions

    def directory_overview(self, max_depth: int = 4, max_entries: int = 400) -> str:
        """Render one indented line per directory, relative to root.

        Traversal stops as soon as *max_entries* lines have been produced or
        a directory is deeper than *max_depth*. Unreadable directories are
        listed but not descended into.
        """
        lines: list[str] = []
        self._walk_overview(self.root, lines, 0, max_depth, max_entries)
        return "\n".join(lines)

    def _walk_overview(
        self,
        directory: Path,
        lines: list[str],
        depth: int,
        max_depth: int,
        max_entries: int,
    ) -> None:
        if depth > max_depth or len(lines) >= max_entries:
            return

        rel = directory.relative_to(self.root).as_posix() if directory != self.root else "."
        lines.append(f"{'  ' * depth}{rel}")
        if len(lines) >= max_entries:
            return

        try:
            entries = sorted(directory.iterdir())
        except OSError:
            return
        for entry in entries:
            if not entry.is_dir() or entry.is_symlink() or entry.name in self.ignored_dirs:
                continue
            self._walk_overview(entry, lines, depth + 1, max_depth, max_entries)
            if len(lines) >= max_entries:
                return


def _normalise_ext(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"
