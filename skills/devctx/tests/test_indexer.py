import errno
import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

# Add scripts/ to path to import modules
sys.path.append(os.path.join(os.path.dirname(__file__), "../scripts"))

from indexer import (
    CollapsedSummary,
    ContextError,
    DirectoryNode,
    GrammarRegistry,
    Language,
    TreeConfig,
    adaptive_tree,
    build_tree,
    detect_project,
    ensure_readable_root,
    extract,
    extract_file_signatures,
    filter_globs,
    heuristic_signatures,
    language_for_path,
    load_context_config,
    matches_glob,
    render,
    should_ignore,
    source_files,
    walk_repo_files,
)
from indexer.constants import DEFAULT_EXCLUDE_SIGNATURES, DEFAULT_IGNORE, MAX_SOURCE_BYTES
from indexer.filters import annotation_for, is_test_path
from indexer.tree import render_with_root


def write_file(root: Path, rel_path: str, content: str = "") -> None:
    full_path = root / rel_path
    full_path.parent.mkdir(parents=True, exist_ok=True)
    full_path.write_text(content, encoding="utf-8")


def denying_scandir(blocked: Path, seen=None):
    """os.scandir stand-in that refuses one directory, as a permission error would."""
    real_scandir = os.scandir

    def scandir(path="."):
        key = os.fspath(path)
        if seen is not None:
            seen.append(key)
        if key == os.fspath(blocked):
            raise PermissionError(errno.EACCES, "Permission denied", key)
        return real_scandir(path)

    return scandir


class TestFilters(unittest.TestCase):
    def test_should_ignore_exact_and_wildcard(self):
        self.assertTrue(should_ignore("node_modules", DEFAULT_IGNORE))
        self.assertTrue(should_ignore("module.pyc", DEFAULT_IGNORE))
        self.assertTrue(should_ignore("pkg.egg-info", DEFAULT_IGNORE))
        self.assertFalse(should_ignore("node_modules_backup", DEFAULT_IGNORE))
        self.assertFalse(should_ignore("src", DEFAULT_IGNORE))

    def test_matches_glob_double_star_crosses_directories(self):
        self.assertTrue(matches_glob("src/a/b.ts", ["src/**/*.ts"]))
        self.assertTrue(matches_glob("src/b.ts", ["src/**/*.ts"]))
        self.assertTrue(matches_glob("docs/guide.md", ["**/*.md"]))
        self.assertTrue(matches_glob("README.md", ["**/*.md"]))

    def test_matches_glob_single_star_stays_in_segment(self):
        self.assertTrue(matches_glob("src/b.ts", ["src/*.ts"]))
        self.assertFalse(matches_glob("src/a/b.ts", ["src/*.ts"]))
        self.assertFalse(matches_glob("src/b.ts", []))

    def test_filter_globs_include_and_exclude(self):
        files = ["src/app.ts", "src/app.test.ts", "tests/test_x.py", "README.md"]
        self.assertEqual(filter_globs(files, include=["**/*.ts"]), ["src/app.ts", "src/app.test.ts"])
        self.assertEqual(
            filter_globs(files, exclude=DEFAULT_EXCLUDE_SIGNATURES),
            ["src/app.ts", "README.md"],
        )

    def test_annotation_for_exact_and_pattern(self):
        annotations = {"package.json": "manifest", "*.config.ts": "tool config", "src/db/*": "database"}
        self.assertEqual(annotation_for("package.json", "package.json", annotations), "manifest")
        self.assertEqual(annotation_for("vite.config.ts", "vite.config.ts", annotations), "tool config")
        self.assertEqual(annotation_for("client.ts", "src/db/client.ts", annotations), "database")
        self.assertIsNone(annotation_for("index.ts", "src/index.ts", annotations))

    def test_is_test_path(self):
        self.assertTrue(is_test_path("src/app.test.ts"))
        self.assertTrue(is_test_path("tests/test_api.py"))
        self.assertTrue(is_test_path("pkg/server_test.go"))
        self.assertFalse(is_test_path("src/testing.ts"))


class TestConfig(unittest.TestCase):
    def test_defaults_without_config_file(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            warnings = []
            config = load_context_config(Path(temp_dir), warnings)
            self.assertEqual(config.budget, 12000)
            self.assertEqual(config.key_files, [])
            self.assertEqual(config.knowledge_dir, ".devctx/knowledge")
            self.assertEqual(config.signature_depth, "exports")
            self.assertFalse(config.auto_knowledge)
            self.assertEqual(config.exclude_signatures, DEFAULT_EXCLUDE_SIGNATURES)
            self.assertIsNone(config.source)
            self.assertEqual(warnings, [])

    def test_context_section_and_field_leniency(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(
                repo,
                ".devctx.yaml",
                "context:\n"
                "  budget: 5000\n"
                "  key_files: README.md\n"
                "  signature_depth: everything\n"
                "  auto_knowledge: true\n"
                "  annotations:\n"
                "    Makefile: build entry\n",
            )
            warnings = []
            config = load_context_config(repo, warnings)
            self.assertEqual(config.budget, 5000)
            self.assertEqual(config.key_files, ["README.md"])
            self.assertEqual(config.signature_depth, "exports")
            self.assertTrue(config.auto_knowledge)
            self.assertEqual(config.annotations, {"Makefile": "build entry"})
            self.assertEqual(config.source, ".devctx.yaml")
            self.assertEqual(len(warnings), 1)
            self.assertIn("signature_depth", warnings[0])

    def test_budget_out_of_range_falls_back(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(repo, ".devctx.json", json.dumps({"budget": 50, "key_files": [1, 2]}))
            warnings = []
            config = load_context_config(repo, warnings)
            self.assertEqual(config.budget, 12000)
            self.assertEqual(config.key_files, [])
            self.assertEqual(len(warnings), 2)

    def test_unparseable_or_non_mapping_config(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(repo, ".devctx.yaml", "budget: [unclosed\n")
            warnings = []
            config = load_context_config(repo, warnings)
            self.assertEqual(config.budget, 12000)
            self.assertEqual(len(warnings), 1)

            write_file(repo, ".devctx.yaml", "- one\n- two\n")
            warnings = []
            config = load_context_config(repo, warnings)
            self.assertEqual(config.budget, 12000)
            self.assertEqual(len(warnings), 1)
            self.assertIn("expected a mapping", warnings[0])


class TestDiscovery(unittest.TestCase):
    def test_walk_skips_ignored_and_generated_files(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(repo, "src/app.ts", "export const ok = 1\n")
            write_file(repo, "src/vendor.min.js", "x")
            write_file(repo, "node_modules/dep/index.js", "x")
            write_file(repo, "dist/app.js", "x")
            write_file(repo, ".git/HEAD", "ref")
            write_file(repo, "next-env.d.ts", "x")
            files = walk_repo_files(repo)
            self.assertEqual(files, ["src/app.ts"])

    def test_missing_root_raises(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            with self.assertRaises(ContextError):
                ensure_readable_root(repo / "missing")
            write_file(repo, "file.txt", "x")
            with self.assertRaises(ContextError):
                walk_repo_files(repo / "file.txt")

    def test_unreadable_directory_is_reported_and_walk_continues(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir).resolve()
            write_file(repo, "main.py", "")
            write_file(repo, "src/app.ts", "")
            write_file(repo, "locked/secret.ts", "")
            warnings = []
            with mock.patch("os.scandir", denying_scandir(repo / "locked")):
                files = walk_repo_files(repo, warnings=warnings)
            self.assertEqual(files, ["main.py", "src/app.ts"])
            self.assertEqual(warnings, ["Unreadable directory locked: Permission denied"])

    def test_source_files_respects_language_and_excludes(self):
        files = ["src/app.ts", "src/app.test.ts", "tests/test_x.py", "README.md", "lib/core.rs"]
        self.assertEqual(source_files(files, DEFAULT_EXCLUDE_SIGNATURES), ["src/app.ts", "lib/core.rs"])
        self.assertEqual(language_for_path("a/b.tsx"), Language.TSX)
        self.assertIsNone(language_for_path("a/b.txt"))


class TestTree(unittest.TestCase):
    def test_render_orders_directories_first_and_annotates(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(repo, "README.md", "# demo")
            write_file(repo, "package.json", "{}")
            write_file(repo, ".gitignore", "node_modules")
            write_file(repo, "src/index.ts", "")
            write_file(repo, "src/lib/util.ts", "")
            write_file(repo, "node_modules/dep/index.js", "")
            rendered = render(build_tree(repo, TreeConfig()))
            expected = "\n".join(
                [
                    "├── src/",
                    "│   ├── lib/",
                    "│   │   └── util.ts",
                    "│   └── index.ts",
                    "├── README.md # documentation",
                    "└── package.json # project manifest",
                ]
            )
            self.assertEqual(rendered, expected)

    def test_crowded_directory_collapses_unless_significant(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            for idx in range(16):
                write_file(repo, f"many/f{idx:02d}.ts", "")
            nodes = build_tree(repo, TreeConfig())
            self.assertEqual(nodes, [CollapsedSummary("many", "many", 16, 0)])
            self.assertEqual(render(nodes), "└── many/ (16 files, 0 dirs)")

            nodes = build_tree(repo, TreeConfig(), significant_paths=["many/f01.ts"])
            self.assertIsInstance(nodes[0], DirectoryNode)
            self.assertEqual(len(nodes[0].children), 16)

    def test_max_depth_bounds_directories(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(repo, "top.txt", "")
            write_file(repo, "deep/x.txt", "")
            write_file(repo, "deep/a/b/c.txt", "")
            rendered = render(build_tree(repo, TreeConfig(max_depth=2)))
            self.assertIn("deep/", rendered)
            self.assertIn("x.txt", rendered)
            self.assertNotIn("a/", rendered)
            self.assertNotIn("c.txt", rendered)
            self.assertEqual(render(build_tree(repo, TreeConfig(max_depth=1))), "└── top.txt")

    def test_unreadable_directory_renders_empty_and_siblings_remain(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir).resolve()
            write_file(repo, "main.py", "")
            write_file(repo, "src/app.ts", "")
            write_file(repo, "src/lib/util.ts", "")
            write_file(repo, "locked/secret.ts", "")
            warnings = []
            seen = []
            with mock.patch("os.scandir", denying_scandir(repo / "locked", seen)):
                rendered = render(build_tree(repo, TreeConfig(), warnings=warnings))
            self.assertIn("app.ts", rendered)
            self.assertIn("util.ts", rendered)
            self.assertIn("main.py", rendered)
            self.assertNotIn("locked", rendered)
            self.assertEqual(warnings, ["Unreadable directory locked: Permission denied"])
            # Each directory is listed once.
            self.assertEqual(len(seen), len(set(seen)))

    def test_empty_directories_are_omitted(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            (repo / "empty").mkdir()
            write_file(repo, "main.py", "")
            self.assertEqual(render(build_tree(repo, TreeConfig())), "└── main.py")

    def test_adaptive_tree_reduces_depth_to_fit(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(repo, "main.py", "")
            for idx in range(10):
                write_file(repo, f"pkg/mod{idx}/deep/file_{idx}.py", "")
            full = adaptive_tree(repo, budget_tokens=100000)
            self.assertTrue(full.startswith(repo.resolve().name + "/\n"))
            self.assertIn("file_3.py", full)

            shallow = adaptive_tree(repo, budget_tokens=1)
            self.assertEqual(shallow, render_with_root(repo, build_tree(repo, TreeConfig(max_depth=1))))
            self.assertNotIn("pkg/", shallow)
            self.assertIn("main.py", shallow)


class TestProjectDetection(unittest.TestCase):
    def test_package_json_identity_and_frameworks(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(
                repo,
                "package.json",
                json.dumps(
                    {
                        "name": "web-app",
                        "description": "Demo app",
                        "dependencies": {"react": "18", "next": "14"},
                        "devDependencies": {"typescript": "5"},
                    }
                ),
            )
            project = detect_project(repo)
            self.assertEqual(project.name, "web-app")
            self.assertEqual(project.description, "Demo app")
            self.assertEqual(project.runtime, "node")
            self.assertEqual(project.frameworks, ["Next.js", "React"])
            self.assertEqual(project.tooling, ["TypeScript"])
            self.assertIsNone(project.monorepo)

    def test_pyproject_dependencies(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(
                repo,
                "pyproject.toml",
                '[project]\nname = "svc"\ndependencies = ["fastapi>=0.110"]\n\n'
                '[project.optional-dependencies]\ntest = ["pytest"]\n',
            )
            project = detect_project(repo)
            self.assertEqual(project.name, "svc")
            self.assertEqual(project.runtime, "python")
            self.assertEqual(project.frameworks, ["FastAPI"])
            self.assertEqual(project.tooling, ["pytest"])

    def test_pnpm_workspaces(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(repo, "package.json", json.dumps({"name": "root"}))
            write_file(repo, "pnpm-workspace.yaml", "packages:\n  - 'packages/*'\n")
            write_file(repo, "packages/api/package.json", json.dumps({"name": "@demo/api", "description": "API"}))
            project = detect_project(repo)
            self.assertIsNotNone(project.monorepo)
            self.assertEqual(project.monorepo.tool, "pnpm")
            self.assertEqual(len(project.monorepo.workspaces), 1)
            workspace = project.monorepo.workspaces[0]
            self.assertEqual(workspace.path, "packages/api")
            self.assertEqual(workspace.name, "@demo/api")
            self.assertEqual(workspace.type, "node")
            self.assertEqual(workspace.description, "API")

    def test_falls_back_to_directory_name(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            project = detect_project(repo)
            self.assertEqual(project.name, repo.resolve().name)
            self.assertEqual(project.runtime, "unknown")


class TestSignatures(unittest.TestCase):
    registry = GrammarRegistry()

    def require(self, language: Language) -> None:
        if not self.registry.has_grammar(language):
            self.skipTest(f"{language.value} grammar unavailable")

    def by_name(self, entries):
        return {entry.name: entry for entry in entries}

    def test_unsupported_language_and_blank_source(self):
        self.assertIsNone(extract("x = 1", "cobol", self.registry))
        self.assertEqual(extract("   \n", Language.PYTHON, self.registry), [])

    def test_exported_function_drops_body(self):
        self.require(Language.TYPESCRIPT)
        source = "export function hello(name: string): void { console.log(name); }"
        entries = extract(source, Language.TYPESCRIPT, self.registry)
        self.assertEqual(len(entries), 1)
        entry = entries[0]
        self.assertEqual((entry.kind, entry.name, entry.exported), ("function", "hello", True))
        for fragment in ("hello", "name: string", "void"):
            self.assertIn(fragment, entry.signature)
        self.assertNotIn("console", entry.signature)

    def test_rust_struct_and_function(self):
        self.require(Language.RUST)
        source = "struct Point {\n    x: i32,\n    y: i32,\n}\n\nfn add(a: i32, b: i32) -> i32 {\n    a + b\n}\n"
        entries = extract(source, Language.RUST, self.registry)
        self.assertEqual(len(entries), 2)
        struct, function = entries
        self.assertIn("x: i32", struct.signature)
        self.assertIn("y: i32", struct.signature)
        self.assertEqual(function.signature, "fn add(a: i32, b: i32) -> i32")
        self.assertNotIn("a + b", function.signature)

    def test_typescript_visitor(self):
        self.require(Language.TYPESCRIPT)
        source = (
            'import { x } from "./x";\n'
            "export interface User {\n"
            "  id: string;\n"
            "}\n"
            "export type Id = string;\n"
            "export function getUser(id: string): User {\n"
            "  return { id };\n"
            "}\n"
            "export const handler = async (req: Request): Promise<void> => {\n"
            "  return;\n"
            "};\n"
            'export const VERSION: string = "1";\n'
            "const internal = 1;\n"
            "function helper() {}\n"
            "export class Service {\n"
            "  run(): void {}\n"
            "}\n"
            'export * from "./types";\n'
            "export enum Color { Red, Green }\n"
        )
        entries = extract(source, Language.TYPESCRIPT, self.registry)
        names = [entry.name for entry in entries]
        self.assertEqual(
            names,
            ["User", "Id", "getUser", "handler", "VERSION", "helper", "Service", "re-export from ./types", "Color"],
        )
        found = self.by_name(entries)
        self.assertEqual(found["User"].kind, "interface")
        self.assertEqual(found["User"].signature, "export interface User {\n  id: string;\n}")
        self.assertEqual(found["Id"].signature, "export type Id = string")
        self.assertEqual(found["getUser"].signature, "export function getUser(id: string): User")
        self.assertEqual(found["getUser"].line, 6)
        self.assertEqual(found["handler"].kind, "function")
        self.assertEqual(found["handler"].signature, "export const handler = async (req: Request): Promise<void> =>")
        self.assertEqual(found["VERSION"].kind, "const")
        self.assertEqual(found["VERSION"].signature, "export const VERSION: string")
        self.assertFalse(found["helper"].exported)
        self.assertEqual(found["helper"].signature, "function helper()")
        self.assertEqual(found["Service"].signature, "export class Service {\n  run(): void\n}")
        self.assertFalse(found["Service"].fields_only)
        self.assertTrue(found["re-export from ./types"].exported)
        self.assertEqual(found["Color"].kind, "enum")

    def test_javascript_default_export(self):
        self.require(Language.JAVASCRIPT)
        source = "export default function () {\n  return 1;\n}\nexport const add = (a, b) => a + b;\n"
        entries = extract(source, Language.JAVASCRIPT, self.registry)
        found = self.by_name(entries)
        self.assertEqual(found["default"].kind, "function")
        self.assertEqual(found["default"].signature, "export default function ()")
        self.assertEqual(found["add"].signature, "export const add = (a, b) =>")

    def test_python_visitor(self):
        self.require(Language.PYTHON)
        source = (
            "import os\n"
            "\n"
            "MAX_ITEMS = 10\n"
            "timeout: float = 2.5\n"
            "lower = 1\n"
            "\n"
            "\n"
            "@dataclass\n"
            "class User:\n"
            "    name: str\n"
            "    age: int = 0\n"
            "\n"
            "    def greet(self, other: str) -> str:\n"
            "        return other\n"
            "\n"
            "\n"
            "async def fetch(url: str) -> bytes:\n"
            '    return b""\n'
        )
        entries = extract(source, Language.PYTHON, self.registry)
        self.assertEqual([entry.name for entry in entries], ["MAX_ITEMS", "timeout", "User", "fetch"])
        found = self.by_name(entries)
        self.assertEqual(found["MAX_ITEMS"].signature, "MAX_ITEMS")
        self.assertEqual(found["timeout"].signature, "timeout: float")
        self.assertEqual(found["User"].kind, "class")
        self.assertEqual(found["User"].line, 8)
        self.assertEqual(
            found["User"].signature,
            "@dataclass\nclass User:\n  name: str\n  age: int\n  def greet(self, other: str) -> str:",
        )
        self.assertFalse(found["User"].fields_only)
        self.assertEqual(found["fetch"].signature, "async def fetch(url: str) -> bytes:")
        self.assertTrue(all(entry.exported for entry in entries))

    def test_python_decorated_members_drop_source_indent(self):
        self.require(Language.PYTHON)
        source = (
            "class Point:\n"
            "    x: int\n"
            "\n"
            "    @property\n"
            "    def norm(self) -> int:\n"
            "        return self.x\n"
            "\n"
            "\n"
            "@dataclass\n"
            "class Pair:\n"
            "    left: int\n"
            "    right: int\n"
        )
        found = self.by_name(extract(source, Language.PYTHON, self.registry))
        self.assertEqual(found["Point"].signature, "class Point:\n  x: int\n  @property\n  def norm(self) -> int:")
        self.assertFalse(found["Point"].fields_only)
        self.assertEqual(found["Pair"].signature, "@dataclass\nclass Pair:\n  left: int\n  right: int")
        self.assertTrue(found["Pair"].fields_only)

    def test_go_visitor(self):
        self.require(Language.GO)
        source = (
            "package main\n"
            "\n"
            "type Server struct {\n"
            "\tAddr string\n"
            "}\n"
            "\n"
            "type Handler interface {\n"
            "\tServe() error\n"
            "}\n"
            "\n"
            "type ID string\n"
            "\n"
            "const MaxConns int = 10\n"
            "\n"
            "func (s *Server) Start(port int) error {\n"
            "\treturn nil\n"
            "}\n"
            "\n"
            "func main() {}\n"
        )
        entries = extract(source, Language.GO, self.registry)
        self.assertEqual([entry.name for entry in entries], ["Server", "Handler", "ID", "MaxConns", "Start", "main"])
        found = self.by_name(entries)
        self.assertEqual(found["Server"].kind, "class")
        self.assertEqual(found["Server"].signature, "type Server struct {\n\tAddr string\n}")
        self.assertTrue(found["Server"].fields_only)
        self.assertEqual(found["Handler"].kind, "interface")
        self.assertEqual(found["ID"].signature, "type ID string")
        self.assertEqual(found["MaxConns"].signature, "const MaxConns int")
        self.assertEqual(found["Start"].signature, "func (s *Server) Start(port int) error")
        self.assertEqual(found["main"].signature, "func main()")

    def test_rust_visitor(self):
        self.require(Language.RUST)
        source = (
            "pub struct Config {\n"
            "    pub port: u16,\n"
            "}\n"
            "\n"
            "pub trait Store {\n"
            "    fn get(&self, key: &str) -> Option<String>;\n"
            "    fn put(&mut self, key: String) {\n"
            "        let _ = key;\n"
            "    }\n"
            "}\n"
            "\n"
            "impl Config {\n"
            "    pub fn new(port: u16) -> Self {\n"
            "        Config { port }\n"
            "    }\n"
            "}\n"
            "\n"
            "pub const MAX: usize = 4;\n"
            "\n"
            "pub fn run() -> Result<(), String> {\n"
            "    Ok(())\n"
            "}\n"
            "\n"
            "mod inner {\n"
            "    pub fn helper() {}\n"
            "}\n"
        )
        entries = extract(source, Language.RUST, self.registry)
        self.assertEqual([entry.name for entry in entries], ["Config", "Store", "new", "MAX", "run", "helper"])
        found = self.by_name(entries)
        self.assertEqual(found["Config"].kind, "class")
        self.assertEqual(found["Store"].kind, "interface")
        self.assertEqual(
            found["Store"].signature,
            "pub trait Store {\n  fn get(&self, key: &str) -> Option<String>\n  fn put(&mut self, key: String)\n}",
        )
        self.assertEqual(found["new"].signature, "pub fn new(port: u16) -> Self")
        self.assertEqual(found["MAX"].signature, "pub const MAX: usize")
        self.assertEqual(found["run"].signature, "pub fn run() -> Result<(), String>")

    def test_java_visitor(self):
        self.require(Language.JAVA)
        source = (
            "package demo;\n"
            "\n"
            "public class Greeter {\n"
            "    private final String name;\n"
            "\n"
            "    public Greeter(String name) {\n"
            "        this.name = name;\n"
            "    }\n"
            "\n"
            "    public String greet(String other) {\n"
            "        return name + other;\n"
            "    }\n"
            "}\n"
            "\n"
            "interface Shape {\n"
            "    double area();\n"
            "}\n"
            "\n"
            "enum Color { RED, GREEN }\n"
        )
        entries = extract(source, Language.JAVA, self.registry)
        self.assertEqual([entry.name for entry in entries], ["Greeter", "Shape", "Color"])
        found = self.by_name(entries)
        self.assertEqual(
            found["Greeter"].signature,
            "public class Greeter {\n"
            "  private final String name\n"
            "  public Greeter(String name)\n"
            "  public String greet(String other)\n"
            "}",
        )
        self.assertEqual(found["Shape"].kind, "interface")
        self.assertEqual(found["Shape"].signature, "interface Shape {\n  double area()\n}")
        self.assertEqual(found["Color"].signature, "enum Color { RED, GREEN }")

    def test_csharp_visitor(self):
        self.require(Language.CSHARP)
        source = (
            "namespace Demo.Services\n"
            "{\n"
            "    public interface IRepo\n"
            "    {\n"
            "        string Find(int id);\n"
            "    }\n"
            "\n"
            "    public class Repo : IRepo\n"
            "    {\n"
            "        public string Name { get; set; }\n"
            "\n"
            "        public string Find(int id) => id.ToString();\n"
            "    }\n"
            "\n"
            "    public enum Mode { On, Off }\n"
            "}\n"
        )
        entries = extract(source, Language.CSHARP, self.registry)
        self.assertEqual([entry.name for entry in entries], ["IRepo", "Repo", "Mode"])
        found = self.by_name(entries)
        self.assertEqual(found["IRepo"].kind, "interface")
        self.assertIn("string Find(int id)", found["IRepo"].signature)
        self.assertTrue(found["Repo"].signature.startswith("public class Repo : IRepo {"))
        self.assertIn("public string Name { get; set; }", found["Repo"].signature)
        self.assertIn("public string Find(int id)", found["Repo"].signature)
        self.assertNotIn("ToString", found["Repo"].signature)
        self.assertEqual(found["Mode"].kind, "enum")

    def test_ruby_visitor(self):
        self.require(Language.RUBY)
        source = (
            "module Billing\n"
            "  class Invoice\n"
            "    def initialize(total)\n"
            "      @total = total\n"
            "    end\n"
            "\n"
            "    def self.build(total)\n"
            "      new(total)\n"
            "    end\n"
            "  end\n"
            "end\n"
            "\n"
            "def helper(x)\n"
            "  x\n"
            "end\n"
        )
        entries = extract(source, Language.RUBY, self.registry)
        self.assertEqual([entry.name for entry in entries], ["Billing", "Invoice", "helper"])
        found = self.by_name(entries)
        self.assertEqual(
            found["Invoice"].signature,
            "class Invoice\n  def initialize(total)\n  def self.build(total)\nend",
        )
        self.assertEqual(found["Invoice"].line, 2)
        self.assertEqual(found["helper"].kind, "function")
        self.assertEqual(found["helper"].signature, "def helper(x)")

    def test_php_visitor(self):
        self.require(Language.PHP)
        source = (
            "<?php\n"
            "namespace App\\Http;\n"
            "\n"
            "interface Handler\n"
            "{\n"
            "    public function handle(array $request): array;\n"
            "}\n"
            "\n"
            "class Controller implements Handler\n"
            "{\n"
            "    private string $name;\n"
            "\n"
            "    public function handle(array $request): array\n"
            "    {\n"
            "        return $request;\n"
            "    }\n"
            "}\n"
            "\n"
            "function helper(int $x): int\n"
            "{\n"
            "    return $x;\n"
            "}\n"
        )
        entries = extract(source, Language.PHP, self.registry)
        self.assertEqual([entry.name for entry in entries], ["Handler", "Controller", "helper"])
        found = self.by_name(entries)
        self.assertEqual(found["Handler"].kind, "interface")
        self.assertIn("public function handle(array $request): array", found["Handler"].signature)
        self.assertIn("private string $name", found["Controller"].signature)
        self.assertNotIn("return $request", found["Controller"].signature)
        self.assertEqual(found["helper"].signature, "function helper(int $x): int")


class TestHeuristicSignatures(unittest.TestCase):
    def test_typescript_lines(self):
        source = "export function foo(a: number): string {\n  return '';\n}\nfunction bar() {}\n"
        entries = heuristic_signatures(source, Language.TYPESCRIPT)
        self.assertEqual([(e.name, e.exported) for e in entries], [("foo", True), ("bar", False)])
        self.assertEqual(entries[0].signature, "export function foo(a: number): string")
        self.assertEqual(entries[1].line, 4)

    def test_python_lines_ignore_nested_definitions(self):
        source = "class Repo:\n    def get(self):\n        pass\n\ndef load(path: str) -> dict:\n    pass\nLIMIT = 3\n"
        entries = heuristic_signatures(source, Language.PYTHON)
        self.assertEqual([(e.kind, e.name) for e in entries], [("class", "Repo"), ("function", "load"), ("const", "LIMIT")])
        self.assertEqual(entries[1].signature, "def load(path: str) -> dict")

    def test_file_extraction_falls_back_without_grammar(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(repo, "src/lib.rs", "pub fn run() -> u8 {\n    0\n}\n")
            warnings = []
            result = extract_file_signatures(repo / "src/lib.rs", repo, GrammarRegistry(languages=[]), warnings)
            self.assertIsNotNone(result)
            self.assertTrue(result.heuristic)
            self.assertEqual(result.path, "src/lib.rs")
            self.assertEqual(result.language, "rust")
            self.assertEqual(result.signatures[0].signature, "pub fn run() -> u8")
            self.assertEqual(warnings, [])

    def test_file_extraction_skips_large_and_undecodable_files(self):
        with tempfile.TemporaryDirectory() as temp_dir:
            repo = Path(temp_dir)
            write_file(repo, "big.py", "x = 1\n" * (MAX_SOURCE_BYTES // 6 + 10))
            (repo / "bad.py").write_bytes(b"\xff\xfe def")
            warnings = []
            registry = GrammarRegistry(languages=[])
            self.assertIsNone(extract_file_signatures(repo / "big.py", repo, registry, warnings))
            self.assertIsNone(extract_file_signatures(repo / "bad.py", repo, registry, warnings))
            self.assertEqual(len(warnings), 2)
            self.assertIn("parse limit", warnings[0])
            self.assertIn("UTF-8", warnings[1])


if __name__ == "__main__":
    unittest.main()
