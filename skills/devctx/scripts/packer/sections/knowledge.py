from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from indexer.constants import DIR_ROLES
from indexer.filters import is_test_path
from indexer.grammars import language_for_path
from indexer.model import FileSignatures
from indexer.project import ProjectInfo

from ..budget import estimate_tokens
from ..markdown import is_path_within
from .code_map import is_barrel

ENTRY_FILE_NAMES = {
    "index.ts",
    "index.tsx",
    "index.js",
    "main.ts",
    "main.js",
    "main.go",
    "main.rs",
    "lib.rs",
    "main.py",
    "app.py",
    "__main__.py",
    "Main.java",
    "Application.java",
    "Program.cs",
}

CONTAINER_DIRS = ("src", "app", "lib")
TEST_DIRS = {"test", "tests", "__tests__", "spec"}


@dataclass
class KnowledgeNote:
    title: str
    content: str

    def render(self) -> str:
        return f"### {self.title}\n\n{self.content}"


def load_user_notes(repo: Path, knowledge_dir: str, warnings: List[str]) -> List[KnowledgeNote]:
    """Markdown files directly inside the knowledge directory, by file name."""
    directory = repo / knowledge_dir
    if not is_path_within(repo, directory):
        warnings.append(f"Ignoring knowledge_dir {knowledge_dir!r}: outside the project")
        return []
    if not directory.is_dir():
        return []
    try:
        candidates = sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == ".md")
    except OSError as exc:
        warnings.append(f"Unreadable knowledge directory {knowledge_dir}: {exc.strerror or exc}")
        return []
    notes: List[KnowledgeNote] = []
    for path in candidates:
        try:
            content = path.read_text(encoding="utf-8").strip()
        except (OSError, UnicodeDecodeError) as exc:
            warnings.append(f"Skipping knowledge file {path.name}: {exc}")
            continue
        if content:
            notes.append(KnowledgeNote(path.stem, content))
    return notes


def _layers(files: Sequence[str]) -> List[Tuple[str, str]]:
    layers: Dict[str, str] = {}
    for path in files:
        parts = path.split("/")
        if len(parts) >= 2 and parts[0] in DIR_ROLES and parts[0] not in layers:
            layers[parts[0]] = DIR_ROLES[parts[0]]
    for path in files:
        parts = path.split("/")
        if len(parts) >= 3 and parts[0] in CONTAINER_DIRS and parts[1] in DIR_ROLES:
            key = f"{parts[0]}/{parts[1]}"
            layers.setdefault(key, DIR_ROLES[parts[1]])
    return list(layers.items())


def entry_points(files: Sequence[str], limit: int = 5) -> List[str]:
    found = [path for path in files if PurePosixPath(path).name in ENTRY_FILE_NAMES and path.count("/") <= 2]
    return found[:limit]


def architecture_note(project: ProjectInfo, files: Sequence[str]) -> Optional[KnowledgeNote]:
    lines: List[str] = []
    layers = _layers(files)
    if layers:
        lines.append("**Layers:**")
        lines.extend(f"- `{directory}/`: {role}" for directory, role in layers)
    entries = entry_points(files)
    if entries:
        if lines:
            lines.append("")
        lines.append("**Entry points:** " + ", ".join(f"`{path}`" for path in entries))
    if project.monorepo:
        if lines:
            lines.append("")
        lines.append(f"**Monorepo ({project.monorepo.tool}):** {len(project.monorepo.workspaces)} workspaces")
    if not lines:
        return None
    return KnowledgeNote("Architecture (auto)", "\n".join(lines))


def naming_convention(files: Sequence[str]) -> Optional[str]:
    sources = [path for path in files if language_for_path(path) is not None and not is_test_path(path)]
    if len(sources) < 3:
        return None
    counts = {"kebab-case": 0, "camelCase": 0, "PascalCase": 0, "snake_case": 0}
    for path in sources:
        stem = PurePosixPath(path).name.split(".", 1)[0]
        if "-" in stem:
            counts["kebab-case"] += 1
        elif "_" in stem:
            counts["snake_case"] += 1
        elif stem[:1].isupper() and any(ch.islower() for ch in stem):
            counts["PascalCase"] += 1
        elif stem[:1].islower() and any(ch.isupper() for ch in stem):
            counts["camelCase"] += 1
    style, count = max(counts.items(), key=lambda item: item[1])
    if count / len(sources) > 0.3:
        return style
    return None


def test_layout(files: Sequence[str]) -> Optional[str]:
    dot_test = sum(1 for path in files if ".test." in path)
    dot_spec = sum(1 for path in files if ".spec." in path and ".test." not in path)
    prefixed = sum(1 for path in files if PurePosixPath(path).name.startswith("test_"))
    suffixed = sum(1 for path in files if path.endswith("_test.go") or path.endswith("_test.py"))
    in_dirs = sum(1 for path in files if TEST_DIRS.intersection(path.split("/")[:-1]))
    parts: List[str] = []
    if dot_test:
        parts.append(f"*.test.* ({dot_test} files)")
    if dot_spec:
        parts.append(f"*.spec.* ({dot_spec} files)")
    if prefixed:
        parts.append(f"test_* ({prefixed} files)")
    if suffixed:
        parts.append(f"*_test.* ({suffixed} files)")
    if in_dirs:
        parts.append(f"test dirs ({in_dirs} files)")
    return ", ".join(parts) or None


def export_style(signatures: Iterable[FileSignatures]) -> Optional[str]:
    named = 0
    default = 0
    for file in signatures:
        if file.language not in ("typescript", "tsx", "javascript"):
            continue
        for entry in file.signatures:
            if not entry.exported:
                continue
            if "export default" in entry.signature:
                default += 1
            else:
                named += 1
    total = named + default
    if total == 0:
        return None
    if named / total > 0.8:
        return "predominantly named exports"
    if default / total > 0.8:
        return "predominantly default exports"
    return f"mixed ({named} named, {default} default)"


def conventions_note(signatures: Sequence[FileSignatures], files: Sequence[str]) -> Optional[KnowledgeNote]:
    lines: List[str] = []
    naming = naming_convention(files)
    if naming:
        lines.append(f"**File naming:** {naming}")
    tests = test_layout(files)
    if tests:
        lines.append(f"**Tests:** {tests}")
    exports = export_style(signatures)
    if exports:
        lines.append(f"**Exports:** {exports}")
    barrels = sum(1 for file in signatures if is_barrel(file.signatures))
    if barrels:
        lines.append(f"**Barrel files:** {barrels} re-export files")
    if not lines:
        return None
    return KnowledgeNote("Conventions (auto)", "\n".join(lines))


def auto_notes(
    project: ProjectInfo,
    signatures: Sequence[FileSignatures],
    files: Sequence[str],
    budget: int,
) -> List[KnowledgeNote]:
    """Generated notes in a fixed order; a note that does not fit is skipped, later ones may still fit."""
    if budget <= 0:
        return []
    notes: List[KnowledgeNote] = []
    remaining = budget
    for note in (architecture_note(project, files), conventions_note(signatures, files)):
        if note is None:
            continue
        cost = estimate_tokens(note.render())
        if cost <= remaining:
            notes.append(note)
            remaining -= cost
    return notes


def knowledge_content(
    repo: Path,
    knowledge_dir: str,
    budget: int,
    warnings: List[str],
    *,
    auto: bool = False,
    project: Optional[ProjectInfo] = None,
    signatures: Sequence[FileSignatures] = (),
    files: Sequence[str] = (),
) -> str:
    parts: List[str] = []
    total = 0
    for note in load_user_notes(repo, knowledge_dir, warnings):
        rendered = note.render()
        cost = estimate_tokens(rendered)
        if total + cost > budget:
            break
        parts.append(rendered)
        total += cost
    if auto and project is not None:
        for note in auto_notes(project, signatures, files, budget - total):
            parts.append(note.render())
    return "\n\n".join(parts)
