"""
Prompt sanitizer

Coarse, best-effort screening of user-supplied text before it reaches a
generative model. This is not a prompt-injection defense; it rejects the
obvious cases and normalises the rest.

Checks run in order:
1. Strip NUL/control characters (space, tab, CR, LF are kept), NFC-normalise
2. Length window
3. Tagged pattern table (shell metacharacters, injection phrases)
4. Optional URL domain allow-list
"""

import re
import logging
import unicodedata
from dataclasses import dataclass, field
from typing import List, Optional, Type

from .errors import (
    DisallowedURLError,
    PromptInjectionError,
    PromptLengthError,
    ShellMetacharError,
    UnsafePromptError,
)

logger = logging.getLogger("medlit.common.sanitize")

MIN_PROMPT_LENGTH = 5
MAX_PROMPT_LENGTH = 10000

SHELL = "shell_metachars"
INJECTION = "prompt_injection"


@dataclass(frozen=True)
class TaggedPattern:
    """One entry of the screening table"""
    tag: str
    name: str
    regex: re.Pattern


def _p(tag: str, name: str, pattern: str) -> TaggedPattern:
    return TaggedPattern(tag=tag, name=name, regex=re.compile(pattern, re.IGNORECASE))


SCREENING_PATTERNS: List[TaggedPattern] = [
    _p(SHELL, "metachar", r"[;|&$`]|\$\(|\)\s*[|&;]"),
    _p(INJECTION, "ignore_previous", r"ignore\s+(all\s+)?(previous|prior|above)\s+(instructions?|prompts?|context)"),
    _p(INJECTION, "disregard_previous", r"disregard\s+(all\s+)?(previous|prior|above)"),
    _p(INJECTION, "forget_told", r"forget\s+(everything|all|what)\s+(you|i)\s+(told|said)"),
    _p(INJECTION, "new_instructions", r"new\s+instructions?:\s*"),
    _p(INJECTION, "system_role", r"system\s*:\s*you\s+are"),
    _p(INJECTION, "you_are_now", r"you\s+are\s+now\s+(a|an|my)\b"),
    _p(INJECTION, "pretend", r"pretend\s+(you\s+are|to\s+be)\s+(a|an)\b"),
    _p(INJECTION, "act_as", r"act\s+as\s+(if|though|a|an)\b"),
    _p(INJECTION, "override", r"override\s+(previous|system|safety)"),
    _p(INJECTION, "bracket_role", r"\[\[.*?(system|admin|root).*?\]\]"),
    _p(INJECTION, "template_token", r"<\|?(system|endoftext|im_start|im_end)\|?>"),
    _p(INJECTION, "jailbreak", r"jailbreak"),
]

_ERRORS_BY_TAG = {
    SHELL: ShellMetacharError,
    INJECTION: PromptInjectionError,
}

_URL_RE = re.compile(r"https?://([^/\s]+)")


@dataclass
class SecurityConfig:
    """Which screening rules apply"""
    max_prompt_length: int = MAX_PROMPT_LENGTH
    allow_shell_metachars: bool = False
    block_prompt_injection: bool = True
    allowed_domains: List[str] = field(default_factory=list)

    def enabled_tags(self) -> List[str]:
        tags = []
        if not self.allow_shell_metachars:
            tags.append(SHELL)
        if self.block_prompt_injection:
            tags.append(INJECTION)
        return tags


def _strip_control_chars(text: str) -> str:
    return "".join(
        ch for ch in text
        if ch in " \t\n\r" or unicodedata.category(ch) != "Cc"
    )


def _log_rejection(reason: str, detail) -> None:
    # Never log the prompt itself
    logger.warning("Prompt rejected: reason=%s detail=%s", reason, detail)


def find_violation(text: str, config: Optional[SecurityConfig] = None) -> Optional[TaggedPattern]:
    """First table entry matching ``text`` among the enabled tags, or None."""
    config = config or SecurityConfig()
    tags = config.enabled_tags()
    for entry in SCREENING_PATTERNS:
        if entry.tag in tags and entry.regex.search(text):
            return entry
    return None


def _check_domains(text: str, allowed: List[str]) -> None:
    for match in _URL_RE.finditer(text):
        domain = match.group(1).lower()
        ok = any(domain == d.lower() or domain.endswith("." + d.lower()) for d in allowed)
        if not ok:
            _log_rejection("disallowed_url", domain)
            raise DisallowedURLError(f"prompt contains disallowed URL: {domain}")


def sanitize_prompt(text: str, config: Optional[SecurityConfig] = None) -> str:
    """Normalise and screen user-supplied prompt text.

    Args:
        text: Raw user input
        config: Screening rules; defaults block shell metacharacters and injection phrases

    Returns:
        The cleaned text

    Raises:
        UnsafePromptError: (or a subclass) when the text is rejected
    """
    config = config or SecurityConfig()

    cleaned = (text or "").strip().replace("\x00", "")
    cleaned = _strip_control_chars(cleaned)
    cleaned = unicodedata.normalize("NFC", cleaned)

    if len(cleaned) < MIN_PROMPT_LENGTH:
        raise PromptLengthError("prompt too short")

    max_len = config.max_prompt_length if config.max_prompt_length > 0 else MAX_PROMPT_LENGTH
    if len(cleaned) > max_len:
        _log_rejection("length_exceeded", len(cleaned))
        raise PromptLengthError("prompt too long")

    violation = find_violation(cleaned, config)
    if violation is not None:
        _log_rejection(violation.tag, violation.name)
        error_cls: Type[UnsafePromptError] = _ERRORS_BY_TAG.get(violation.tag, UnsafePromptError)
        raise error_cls(f"prompt contains unsafe content: {violation.tag}")

    if config.allowed_domains:
        _check_domains(cleaned, config.allowed_domains)

    return cleaned
