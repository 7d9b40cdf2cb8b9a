"""
medlit Common Module

Shared infrastructure for the QA and synthesis pipelines.
"""

from .config import MedlitConfig, load_config
from .context import CallContext
from .llm_client import Completer, LLMClient, create_llm_client

__all__ = [
    "MedlitConfig",
    "load_config",
    "CallContext",
    "Completer",
    "LLMClient",
    "create_llm_client",
]
