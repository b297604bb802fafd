from .discovery import ensure_readable_root, language_counts, source_files, walk_repo_files
from .filters import annotation_for, filter_globs, matches_glob, should_ignore
from .grammars import GrammarRegistry, Language, language_for_path
from .model import ContextError, FileSignatures, SignatureEntry
from .project import MonorepoInfo, ProjectInfo, Workspace, detect_project
from .repo_config import ContextConfig, load_context_config
from .signatures import extract, extract_file_signatures, heuristic_signatures
from .tree import CollapsedSummary, DirectoryNode, FileNode, TreeConfig, adaptive_tree, build_tree, render

__all__ = [name for name in globals().keys() if not name.startswith("_")]
