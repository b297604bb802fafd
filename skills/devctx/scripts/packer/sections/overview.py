from __future__ import annotations

from pathlib import PurePosixPath
from typing import Dict, List, Optional

from indexer.project import ProjectInfo

from ..markdown import sanitize_heading


def overview_lines(project: ProjectInfo, languages: Optional[Dict[str, int]] = None) -> List[str]:
    lines: List[str] = []
    if project.description:
        lines.append(sanitize_heading(project.description))
        lines.append("")
    lines.append(f"- **Runtime**: {project.runtime}")
    if languages:
        ranked = sorted(languages.items(), key=lambda item: (-item[1], item[0]))
        lines.append("- **Languages**: " + ", ".join(f"{name} ({count})" for name, count in ranked))
    if project.frameworks:
        lines.append(f"- **Frameworks**: {', '.join(project.frameworks)}")
    if project.tooling:
        lines.append(f"- **Tooling**: {', '.join(project.tooling)}")
    if project.monorepo:
        lines.append(f"- **Monorepo**: {project.monorepo.tool}")
        lines.append("- **Workspaces**:")
        for workspace in project.monorepo.workspaces:
            line = f"  - `{workspace.path}`"
            if workspace.name != PurePosixPath(workspace.path).name:
                line += f" ({sanitize_heading(workspace.name)})"
            if workspace.type:
                line += f" [{workspace.type}]"
            if workspace.description:
                line += f": {sanitize_heading(workspace.description)}"
            lines.append(line)
    return lines


def overview_content(project: ProjectInfo, languages: Optional[Dict[str, int]] = None) -> str:
    return "\n".join(overview_lines(project, languages))
