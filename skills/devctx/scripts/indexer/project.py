"""Best-effort project metadata for the overview section."""
from __future__ import annotations

import json
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml

from .constants import MONOREPO_MARKERS

RUNTIME_MARKERS: List[tuple] = [
    ("bun", ("bun.lockb", "bun.lock", "bunfig.toml")),
    ("deno", ("deno.json", "deno.jsonc")),
    ("node", ("package.json",)),
    ("rust", ("Cargo.toml",)),
    ("python", ("pyproject.toml", "setup.py", "setup.cfg", "requirements.txt", "Pipfile")),
    ("go", ("go.mod",)),
    ("java", ("pom.xml", "build.gradle", "build.gradle.kts")),
    ("ruby", ("Gemfile",)),
    ("php", ("composer.json",)),
]

JS_FRAMEWORKS = {
    "next": "Next.js",
    "react": "React",
    "vue": "Vue",
    "svelte": "Svelte",
    "@angular/core": "Angular",
    "express": "Express",
    "fastify": "Fastify",
    "hono": "Hono",
    "@nestjs/core": "NestJS",
    "koa": "Koa",
    "ink": "Ink",
}

JS_TOOLING = {
    "typescript": "TypeScript",
    "vite": "Vite",
    "vitest": "Vitest",
    "jest": "Jest",
    "eslint": "ESLint",
    "prettier": "Prettier",
    "@biomejs/biome": "Biome",
    "tailwindcss": "Tailwind CSS",
}

PY_FRAMEWORKS = {
    "fastapi": "FastAPI",
    "django": "Django",
    "flask": "Flask",
    "aiohttp": "aiohttp",
    "starlette": "Starlette",
}

PY_TOOLING = {"pytest": "pytest", "ruff": "Ruff", "mypy": "mypy", "black": "Black", "tox": "tox"}

RUST_FRAMEWORKS = {"axum": "Axum", "actix-web": "Actix Web", "rocket": "Rocket", "tokio": "Tokio", "warp": "Warp"}

GO_FRAMEWORKS = {
    "github.com/gin-gonic/gin": "Gin",
    "github.com/gofiber/fiber": "Fiber",
    "github.com/labstack/echo": "Echo",
    "github.com/go-chi/chi": "chi",
    "github.com/gorilla/mux": "gorilla/mux",
}


@dataclass
class Workspace:
    path: str
    name: str
    type: Optional[str] = None
    description: Optional[str] = None


@dataclass
class MonorepoInfo:
    tool: str
    workspaces: List[Workspace] = field(default_factory=list)


@dataclass
class ProjectInfo:
    name: str
    description: Optional[str] = None
    runtime: str = "unknown"
    frameworks: List[str] = field(default_factory=list)
    tooling: List[str] = field(default_factory=list)
    monorepo: Optional[MonorepoInfo] = None


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError):
        return {}


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def _dep_name(raw: str) -> str:
    # "fastapi[all]>=0.110; python_version>='3.10'" -> "fastapi"
    token = raw.split(";", 1)[0].split("[", 1)[0]
    token = re.split(r"[<>=!~ ]", token, maxsplit=1)[0]
    return token.strip().lower()


def _python_deps(data: Dict[str, Any]) -> Set[str]:
    deps: Set[str] = set()
    project = data.get("project")
    if isinstance(project, dict):
        for item in project.get("dependencies") or []:
            if isinstance(item, str):
                deps.add(_dep_name(item))
        optional = project.get("optional-dependencies")
        if isinstance(optional, dict):
            for group in optional.values():
                for item in group if isinstance(group, list) else []:
                    if isinstance(item, str):
                        deps.add(_dep_name(item))
    tool = data.get("tool")
    if isinstance(tool, dict):
        poetry = tool.get("poetry")
        if isinstance(poetry, dict) and isinstance(poetry.get("dependencies"), dict):
            deps.update(key.lower() for key in poetry["dependencies"] if isinstance(key, str))
        deps.update(name for name in PY_TOOLING if name in tool)
    return deps


def _package_json_deps(data: Dict[str, Any]) -> Set[str]:
    deps: Set[str] = set()
    for key in ("dependencies", "devDependencies", "peerDependencies"):
        section = data.get(key)
        if isinstance(section, dict):
            deps.update(name for name in section if isinstance(name, str))
    return deps


def _text(value: Any) -> Optional[str]:
    return value.strip() if isinstance(value, str) and value.strip() else None


def detect_runtime(directory: Path) -> str:
    for runtime, markers in RUNTIME_MARKERS:
        if any((directory / marker).exists() for marker in markers):
            return runtime
    if any(directory.glob("*.csproj")) or any(directory.glob("*.sln")):
        return "dotnet"
    return "unknown"


def _manifest_identity(directory: Path) -> Dict[str, Optional[str]]:
    package = _read_json(directory / "package.json") if (directory / "package.json").is_file() else {}
    if package:
        return {"name": _text(package.get("name")), "description": _text(package.get("description"))}
    pyproject = _read_toml(directory / "pyproject.toml") if (directory / "pyproject.toml").is_file() else {}
    project = pyproject.get("project") if isinstance(pyproject.get("project"), dict) else {}
    poetry = (pyproject.get("tool") or {}).get("poetry") if isinstance(pyproject.get("tool"), dict) else None
    for table in (project, poetry if isinstance(poetry, dict) else {}):
        if table.get("name"):
            return {"name": _text(table.get("name")), "description": _text(table.get("description"))}
    cargo = _read_toml(directory / "Cargo.toml") if (directory / "Cargo.toml").is_file() else {}
    crate = cargo.get("package") if isinstance(cargo.get("package"), dict) else {}
    if crate.get("name"):
        return {"name": _text(crate.get("name")), "description": _text(crate.get("description"))}
    composer = _read_json(directory / "composer.json") if (directory / "composer.json").is_file() else {}
    if composer.get("name"):
        return {"name": _text(composer.get("name")), "description": _text(composer.get("description"))}
    go_mod = directory / "go.mod"
    if go_mod.is_file():
        try:
            match = re.search(r"^module\s+(\S+)", go_mod.read_text(encoding="utf-8"), re.MULTILINE)
        except (OSError, UnicodeDecodeError):
            match = None
        if match:
            return {"name": match.group(1).rsplit("/", 1)[-1], "description": None}
    return {"name": None, "description": None}


def _frameworks_and_tooling(repo: Path) -> tuple:
    frameworks: List[str] = []
    tooling: List[str] = []
    if (repo / "package.json").is_file():
        deps = _package_json_deps(_read_json(repo / "package.json"))
        frameworks.extend(label for dep, label in JS_FRAMEWORKS.items() if dep in deps)
        tooling.extend(label for dep, label in JS_TOOLING.items() if dep in deps)
    if (repo / "pyproject.toml").is_file():
        deps = _python_deps(_read_toml(repo / "pyproject.toml"))
        frameworks.extend(label for dep, label in PY_FRAMEWORKS.items() if dep in deps)
        tooling.extend(label for dep, label in PY_TOOLING.items() if dep in deps)
    if (repo / "Cargo.toml").is_file():
        cargo = _read_toml(repo / "Cargo.toml")
        deps = cargo.get("dependencies") if isinstance(cargo.get("dependencies"), dict) else {}
        frameworks.extend(label for dep, label in RUST_FRAMEWORKS.items() if dep in deps)
    if (repo / "go.mod").is_file():
        try:
            content = (repo / "go.mod").read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            content = ""
        frameworks.extend(label for dep, label in GO_FRAMEWORKS.items() if dep in content)
    if (repo / "Dockerfile").is_file() or (repo / "docker-compose.yml").is_file():
        tooling.append("Docker")
    if (repo / ".github" / "workflows").is_dir():
        tooling.append("GitHub Actions")
    return frameworks, tooling


def _workspace_globs(repo: Path) -> tuple:
    package = _read_json(repo / "package.json") if (repo / "package.json").is_file() else {}
    workspaces = package.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    tool = None
    for marker, name in MONOREPO_MARKERS.items():
        if (repo / marker).exists():
            tool = name
            break
    globs: List[str] = []
    if isinstance(workspaces, list):
        globs.extend(item for item in workspaces if isinstance(item, str))
        tool = tool or ("bun" if (repo / "bun.lockb").exists() else "npm")
    if (repo / "pnpm-workspace.yaml").is_file():
        packages = _read_yaml(repo / "pnpm-workspace.yaml").get("packages")
        globs.extend(item for item in packages or [] if isinstance(item, str))
    if (repo / "lerna.json").is_file():
        packages = _read_json(repo / "lerna.json").get("packages")
        globs.extend(item for item in packages or [] if isinstance(item, str))
    if (repo / "Cargo.toml").is_file():
        workspace = _read_toml(repo / "Cargo.toml").get("workspace")
        if isinstance(workspace, dict) and isinstance(workspace.get("members"), list):
            globs.extend(item for item in workspace["members"] if isinstance(item, str))
            tool = tool or "cargo"
    if (repo / "go.work").is_file():
        try:
            content = (repo / "go.work").read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            content = ""
        globs.extend(re.findall(r"^\s*(?:use\s+)?(\./[^\s()]+)", content, re.MULTILINE))
    return tool, globs


def _expand_workspaces(repo: Path, globs: List[str]) -> List[Workspace]:
    seen: Set[str] = set()
    workspaces: List[Workspace] = []
    for pattern in globs:
        if pattern.startswith("!"):
            continue
        cleaned = pattern.strip().rstrip("/")
        while cleaned.startswith("./"):
            cleaned = cleaned[2:]
        if not cleaned:
            continue
        for candidate in sorted(repo.glob(cleaned)):
            if not candidate.is_dir() or "node_modules" in candidate.parts:
                continue
            rel = candidate.relative_to(repo).as_posix()
            if rel in seen:
                continue
            seen.add(rel)
            identity = _manifest_identity(candidate)
            runtime = detect_runtime(candidate)
            workspaces.append(
                Workspace(
                    path=rel,
                    name=identity["name"] or candidate.name,
                    type=None if runtime == "unknown" else runtime,
                    description=identity["description"],
                )
            )
    return workspaces


def detect_project(repo: Path) -> ProjectInfo:
    repo = repo.resolve()
    identity = _manifest_identity(repo)
    frameworks, tooling = _frameworks_and_tooling(repo)
    tool, globs = _workspace_globs(repo)
    monorepo = None
    if tool or globs:
        workspaces = _expand_workspaces(repo, globs)
        if workspaces:
            monorepo = MonorepoInfo(tool=tool or "workspace", workspaces=workspaces)
    return ProjectInfo(
        name=identity["name"] or repo.name or "project",
        description=identity["description"],
        runtime=detect_runtime(repo),
        frameworks=frameworks,
        tooling=tooling,
        monorepo=monorepo,
    )
