from __future__ import annotations

from typing import Dict, List, Tuple


DEFAULT_IGNORE: List[str] = [
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "dist",
    "build",
    "out",
    ".next",
    ".nuxt",
    ".output",
    ".turbo",
    ".cache",
    ".parcel-cache",
    ".vercel",
    "coverage",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    ".tox",
    ".venv",
    "venv",
    "target",
    ".gradle",
    "obj",
    "vendor",
    ".idea",
    ".DS_Store",
    "*.pyc",
    "*.pyo",
    "*.egg-info",
    "*.tsbuildinfo",
    ".env",
    ".env.*",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "bun.lockb",
    "Cargo.lock",
    "poetry.lock",
    "composer.lock",
    "Gemfile.lock",
]

# Hidden from the rendered tree only; the file walk still sees them.
DISPLAY_NOISE: List[str] = [
    "*.lock",
    "*.lockb",
    "*-lock.json",
    "*-lock.yaml",
    ".editorconfig",
    ".eslintrc*",
    ".eslintignore",
    "eslint.config.*",
    ".prettierrc*",
    ".prettierignore",
    "prettier.config.*",
    ".stylelintrc*",
    ".npmrc",
    ".nvmrc",
    ".gitattributes",
    ".gitignore",
    ".dockerignore",
    "*.map",
]

DEFAULT_ANNOTATIONS: Dict[str, str] = {
    "package.json": "project manifest",
    "tsconfig.json": "TypeScript config",
    "Cargo.toml": "Rust manifest",
    "pyproject.toml": "Python config",
    "setup.py": "Python packaging",
    "go.mod": "Go module",
    "Gemfile": "Ruby dependencies",
    "composer.json": "PHP dependencies",
    "pom.xml": "Maven build",
    "build.gradle": "Gradle build",
    "Dockerfile": "container build",
    "README.md": "documentation",
    "CLAUDE.md": "assistant context",
    ".env.example": "environment template",
}

DEFAULT_MAX_DEPTH = 4
DIR_COLLAPSE_THRESHOLD = 15
DEFAULT_TREE_BUDGET = 1500

MAX_WALK_DEPTH = 20
MAX_SOURCE_BYTES = 512 * 1024

CONTEXT_CONFIG_FILES: Tuple[str, ...] = (".devctx.yaml", ".devctx.yml", ".devctx.json")

DEFAULT_EXCLUDE_SIGNATURES: List[str] = [
    "**/*.test.*",
    "**/*.spec.*",
    "**/test_*.py",
    "**/*_test.go",
    "**/tests/**",
    "**/__tests__/**",
]

ENTRYPOINT_STEMS = {"index", "main", "mod", "app", "server", "cli", "program", "lib", "__main__"}

SERVICE_TOKENS = (
    "route",
    "router",
    "handler",
    "service",
    "controller",
    "api",
    "middleware",
    "resolver",
    "endpoint",
    "server",
    "command",
)

SCHEMA_STEMS = {
    "config",
    "configuration",
    "settings",
    "schema",
    "schemas",
    "constants",
    "consts",
    "env",
    "environment",
    "models",
}

MONOREPO_MARKERS: Dict[str, str] = {
    "pnpm-workspace.yaml": "pnpm",
    "lerna.json": "lerna",
    "nx.json": "nx",
    "turbo.json": "turborepo",
    "rush.json": "rush",
    "go.work": "go-workspace",
}

DIR_ROLES: Dict[str, str] = {
    "routes": "API routes",
    "api": "API layer",
    "controllers": "controllers",
    "services": "business logic",
    "models": "data models",
    "middleware": "middleware",
    "components": "UI components",
    "hooks": "React hooks",
    "pages": "page components",
    "views": "views",
    "lib": "shared library",
    "utils": "utilities",
    "helpers": "helpers",
    "config": "configuration",
    "core": "core logic",
    "common": "shared code",
    "shared": "shared code",
    "store": "state management",
    "handlers": "request handlers",
    "resolvers": "GraphQL resolvers",
    "schemas": "schemas",
    "types": "type definitions",
    "entities": "domain entities",
    "repositories": "data access",
    "migrations": "DB migrations",
    "cmd": "CLI commands",
    "pkg": "packages",
    "internal": "internal packages",
}
