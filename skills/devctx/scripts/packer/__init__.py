from .budget import SECTION_IDS, SECTION_WEIGHTS, allocate, configure_tokenizer, estimate_tokens, redistribute
from .compiler import ContextResult, Section, compile_context, project_output_path
from .sections.code_map import CodeMapResult, pack_code_map
from .sections.key_files import key_files_content
from .sections.knowledge import knowledge_content
from .sections.overview import overview_content

__all__ = [name for name in globals().keys() if not name.startswith("_")]
