"""
Configuration Management for medlit

Loads configuration from ~/.medlit/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field

from .errors import InputValidationError

logger = logging.getLogger("medlit.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".medlit"
CONFIG_PATH = CONFIG_DIR / "config.json"

DEFAULT_EUTILS_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"


@dataclass
class LLMConfig:
    """Generative-text provider configuration"""
    provider: str = "openai"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-20250514"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_base_url: str = ""  # OpenAI-compatible endpoints
    google_api_key: str = ""
    google_model: str = "gemini-2.0-flash"
    timeout: float = 60.0

    @property
    def model(self) -> str:
        return {
            "anthropic": self.anthropic_model,
            "openai": self.openai_model,
            "google": self.google_model,
        }.get(self.provider, "")


@dataclass
class PubMedConfig:
    """NCBI E-utilities configuration"""
    base_url: str = DEFAULT_EUTILS_URL
    api_key: str = ""
    tool: str = "medlit"
    email: str = "medlit@users.noreply.github.com"
    timeout: float = 30.0


@dataclass
class QAConfig:
    """Adaptive retrieval QA configuration"""
    confidence_threshold: int = 7
    max_results: int = 3
    force_retrieval: bool = False
    force_parametric: bool = False
    evidence_budget: int = 1500  # characters shared by all evidence abstracts

    def validate(self) -> None:
        if not 1 <= self.confidence_threshold <= 10:
            raise InputValidationError("confidence threshold must be 1-10")
        if self.max_results < 1:
            raise InputValidationError("max_results must be >= 1")
        if self.evidence_budget < 1:
            raise InputValidationError("evidence_budget must be >= 1")
        if self.force_retrieval and self.force_parametric:
            raise InputValidationError("force_retrieval and force_parametric are mutually exclusive")


@dataclass
class SynthesisConfig:
    """Literature synthesis configuration"""
    papers_to_use: int = 5
    papers_to_search: int = 30
    relevance_threshold: int = 7
    target_words: int = 250

    @property
    def search_breadth(self) -> int:
        # Never search fewer papers than we intend to use
        return max(self.papers_to_search, self.papers_to_use)

    def validate(self) -> None:
        if self.papers_to_use < 1:
            raise InputValidationError("papers_to_use must be >= 1")
        if self.papers_to_search < 1:
            raise InputValidationError("papers_to_search must be >= 1")
        if self.target_words < 1:
            raise InputValidationError("target_words must be >= 1")
        if not 1 <= self.relevance_threshold <= 10:
            raise InputValidationError("relevance threshold must be 1-10")


@dataclass
class MedlitConfig:
    """Main medlit configuration"""
    llm: LLMConfig = field(default_factory=LLMConfig)
    pubmed: PubMedConfig = field(default_factory=PubMedConfig)
    qa: QAConfig = field(default_factory=QAConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    _env_sourced_keys: set = field(default_factory=set, repr=False)


def _parse_llm_config(data: dict) -> LLMConfig:
    """Parse llm section from config dict"""
    llm_data = data.get("llm", {})
    defaults = LLMConfig()
    return LLMConfig(
        provider=llm_data.get("provider", defaults.provider),
        anthropic_api_key=llm_data.get("anthropic_api_key", ""),
        anthropic_model=llm_data.get("anthropic_model", defaults.anthropic_model),
        openai_api_key=llm_data.get("openai_api_key", ""),
        openai_model=llm_data.get("openai_model", defaults.openai_model),
        openai_base_url=llm_data.get("openai_base_url", ""),
        google_api_key=llm_data.get("google_api_key", ""),
        google_model=llm_data.get("google_model", defaults.google_model),
        timeout=llm_data.get("timeout", defaults.timeout),
    )


def _parse_pubmed_config(data: dict) -> PubMedConfig:
    """Parse pubmed section from config dict"""
    pubmed_data = data.get("pubmed", {})
    defaults = PubMedConfig()
    return PubMedConfig(
        base_url=pubmed_data.get("base_url", defaults.base_url),
        api_key=pubmed_data.get("api_key", ""),
        tool=pubmed_data.get("tool", defaults.tool),
        email=pubmed_data.get("email", defaults.email),
        timeout=pubmed_data.get("timeout", defaults.timeout),
    )


def _parse_qa_config(data: dict) -> QAConfig:
    """Parse qa section from config dict"""
    qa_data = data.get("qa", {})
    return QAConfig(
        confidence_threshold=qa_data.get("confidence_threshold", 7),
        max_results=qa_data.get("max_results", 3),
        force_retrieval=qa_data.get("force_retrieval", False),
        force_parametric=qa_data.get("force_parametric", False),
        evidence_budget=qa_data.get("evidence_budget", 1500),
    )


def _parse_synthesis_config(data: dict) -> SynthesisConfig:
    """Parse synthesis section from config dict"""
    synth_data = data.get("synthesis", {})
    return SynthesisConfig(
        papers_to_use=synth_data.get("papers_to_use", 5),
        papers_to_search=synth_data.get("papers_to_search", 30),
        relevance_threshold=synth_data.get("relevance_threshold", 7),
        target_words=synth_data.get("target_words", 250),
    )


def load_config() -> MedlitConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.medlit/config.json)
    3. Default values
    """
    config = MedlitConfig()

    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.llm = _parse_llm_config(data)
            config.pubmed = _parse_pubmed_config(data)
            config.qa = _parse_qa_config(data)
            config.synthesis = _parse_synthesis_config(data)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    # LLM env var overrides (track env-sourced keys so they are not persisted)
    _env_llm_map = {
        "OPENAI_API_KEY": "openai_api_key",
        "LLM_API_KEY": "openai_api_key",
        "LLM_BASE_URL": "openai_base_url",
        "OPENAI_MODEL": "openai_model",
        "ANTHROPIC_API_KEY": "anthropic_api_key",
        "ANTHROPIC_MODEL": "anthropic_model",
        "GOOGLE_API_KEY": "google_api_key",
        "GEMINI_API_KEY": "google_api_key",
        "GOOGLE_MODEL": "google_model",
        "MEDLIT_LLM_PROVIDER": "provider",
    }
    for env_var, attr in _env_llm_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.llm, attr, val)
            config._env_sourced_keys.add(attr)

    # LLM_MODEL applies to whichever provider is active
    if os.getenv("LLM_MODEL"):
        model_attr = f"{config.llm.provider}_model"
        if hasattr(config.llm, model_attr):
            setattr(config.llm, model_attr, os.getenv("LLM_MODEL"))

    _env_pubmed_map = {
        "NCBI_API_KEY": "api_key",
        "NCBI_EMAIL": "email",
        "NCBI_TOOL": "tool",
    }
    for env_var, attr in _env_pubmed_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.pubmed, attr, val)
            if attr == "api_key":
                config._env_sourced_keys.add("ncbi_api_key")

    return config


def save_config(config: MedlitConfig) -> None:
    """Save configuration to file.

    API key fields that were sourced from environment variables are written
    as empty strings so that secrets are not persisted to disk.
    """
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)

    env_sourced = getattr(config, "_env_sourced_keys", set())

    llm_section = {
        "provider": config.llm.provider,
        "anthropic_api_key": config.llm.anthropic_api_key,
        "anthropic_model": config.llm.anthropic_model,
        "openai_api_key": config.llm.openai_api_key,
        "openai_model": config.llm.openai_model,
        "openai_base_url": config.llm.openai_base_url,
        "google_api_key": config.llm.google_api_key,
        "google_model": config.llm.google_model,
        "timeout": config.llm.timeout,
    }
    for key in ("anthropic_api_key", "openai_api_key", "google_api_key"):
        if key in env_sourced:
            llm_section[key] = ""

    data = {
        "llm": llm_section,
        "pubmed": {
            "base_url": config.pubmed.base_url,
            "api_key": "" if "ncbi_api_key" in env_sourced else config.pubmed.api_key,
            "tool": config.pubmed.tool,
            "email": config.pubmed.email,
            "timeout": config.pubmed.timeout,
        },
        "qa": {
            "confidence_threshold": config.qa.confidence_threshold,
            "max_results": config.qa.max_results,
            "force_retrieval": config.qa.force_retrieval,
            "force_parametric": config.qa.force_parametric,
            "evidence_budget": config.qa.evidence_budget,
        },
        "synthesis": {
            "papers_to_use": config.synthesis.papers_to_use,
            "papers_to_search": config.synthesis.papers_to_search,
            "relevance_threshold": config.synthesis.relevance_threshold,
            "target_words": config.synthesis.target_words,
        },
    }

    with open(CONFIG_PATH, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    CONFIG_PATH.chmod(0o600)
