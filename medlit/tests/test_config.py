"""Tests for configuration loading, env overrides and validation."""

import json
import os
import pytest
from unittest.mock import patch


class TestDefaults:
    def test_qa_defaults(self):
        from medlit.common.config import QAConfig
        cfg = QAConfig()
        assert cfg.confidence_threshold == 7
        assert cfg.max_results == 3
        assert cfg.force_retrieval is False
        assert cfg.force_parametric is False

    def test_synthesis_defaults(self):
        from medlit.common.config import SynthesisConfig
        cfg = SynthesisConfig()
        assert cfg.papers_to_use == 5
        assert cfg.papers_to_search == 30
        assert cfg.relevance_threshold == 7
        assert cfg.target_words == 250

    def test_search_breadth_never_below_papers_to_use(self):
        from medlit.common.config import SynthesisConfig
        assert SynthesisConfig(papers_to_use=40, papers_to_search=30).search_breadth == 40
        assert SynthesisConfig(papers_to_use=5, papers_to_search=30).search_breadth == 30


class TestValidation:
    @pytest.mark.parametrize("threshold", [0, 11])
    def test_confidence_threshold_range(self, threshold):
        from medlit.common.config import QAConfig
        from medlit.common.errors import InputValidationError
        with pytest.raises(InputValidationError, match="1-10"):
            QAConfig(confidence_threshold=threshold).validate()

    def test_forced_modes_are_exclusive(self):
        from medlit.common.config import QAConfig
        from medlit.common.errors import InputValidationError
        with pytest.raises(InputValidationError, match="mutually exclusive"):
            QAConfig(force_retrieval=True, force_parametric=True).validate()

    def test_synthesis_rejects_zero_papers(self):
        from medlit.common.config import SynthesisConfig
        from medlit.common.errors import InputValidationError
        with pytest.raises(InputValidationError, match="papers_to_use"):
            SynthesisConfig(papers_to_use=0).validate()

    def test_synthesis_relevance_range(self):
        from medlit.common.config import SynthesisConfig
        from medlit.common.errors import InputValidationError
        with pytest.raises(InputValidationError, match="relevance"):
            SynthesisConfig(relevance_threshold=11).validate()


class TestLoadConfig:
    def test_load_config_file_sections(self, tmp_path):
        from medlit.common.config import load_config
        config_data = {
            "llm": {"provider": "anthropic", "anthropic_api_key": "sk-ant"},
            "pubmed": {"email": "me@example.org"},
            "qa": {"confidence_threshold": 8},
            "synthesis": {"papers_to_use": 3, "target_words": 400},
        }
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps(config_data))

        with patch("medlit.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, {}, clear=True):
            cfg = load_config()

        assert cfg.llm.provider == "anthropic"
        assert cfg.llm.anthropic_api_key == "sk-ant"
        assert cfg.pubmed.email == "me@example.org"
        assert cfg.qa.confidence_threshold == 8
        assert cfg.synthesis.papers_to_use == 3
        assert cfg.synthesis.papers_to_search == 30

    def test_invalid_json_falls_back_to_defaults(self, tmp_path, caplog):
        import logging
        from medlit.common.config import load_config
        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")

        with patch("medlit.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, {}, clear=True), \
             caplog.at_level(logging.WARNING, logger="medlit.common.config"):
            cfg = load_config()

        assert cfg.qa.confidence_threshold == 7
        assert "Failed to load config" in caplog.text

    def test_env_var_overrides(self, tmp_path):
        from medlit.common.config import load_config
        config_file = tmp_path / "config.json"
        config_file.write_text("{}")

        env = {
            "LLM_API_KEY": "sk-env",
            "LLM_BASE_URL": "http://localhost:8000/v1",
            "LLM_MODEL": "llama-3",
            "NCBI_API_KEY": "ncbi-key",
        }
        with patch("medlit.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, env, clear=True):
            cfg = load_config()

        assert cfg.llm.openai_api_key == "sk-env"
        assert cfg.llm.openai_base_url == "http://localhost:8000/v1"
        assert cfg.llm.openai_model == "llama-3"
        assert cfg.llm.model == "llama-3"
        assert cfg.pubmed.api_key == "ncbi-key"

    def test_save_config_omits_env_keys(self, tmp_path):
        from medlit.common.config import load_config, save_config
        config_file = tmp_path / "nested" / "config.json"

        env = {"OPENAI_API_KEY": "sk-secret", "NCBI_API_KEY": "ncbi-secret"}
        with patch("medlit.common.config.CONFIG_PATH", config_file), \
             patch.dict(os.environ, env, clear=True):
            cfg = load_config()
            cfg.llm.anthropic_api_key = "sk-from-file"
            save_config(cfg)

        saved = json.loads(config_file.read_text())
        assert saved["llm"]["openai_api_key"] == ""
        assert saved["llm"]["anthropic_api_key"] == "sk-from-file"
        assert saved["pubmed"]["api_key"] == ""
        assert oct(config_file.stat().st_mode & 0o777) == "0o600"
