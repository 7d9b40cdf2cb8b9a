"""
BibTeX export

@article entries keyed "<Surname><Year>", with a, b, ..., z, aa, ...
suffixes for collisions inside one batch.
"""

import re
from typing import List

from ..common.schemas import Reference
from .ris import split_author_string

MAX_KEY_LENGTH = 64

_LATEX_SPECIAL = {
    "\\": "\\\\",
    "{": "\\{",
    "}": "\\}",
    "%": "\\%",
    "&": "\\&",
    "$": "\\$",
    "#": "\\#",
    "_": "\\_",
    "~": "\\~{}",
    "^": "\\^{}",
}
_LATEX_RE = re.compile("|".join(re.escape(c) for c in _LATEX_SPECIAL))


def latex_escape(value: str) -> str:
    """Escape BibTeX/LaTeX specials in one pass and flatten whitespace."""
    value = " ".join((value or "").split())
    return _LATEX_RE.sub(lambda m: _LATEX_SPECIAL[m.group(0)], value)


def alpha_suffix(n: int) -> str:
    """1 -> "a", 26 -> "z", 27 -> "aa"."""
    out = ""
    while n > 0:
        n -= 1
        out = chr(ord("a") + n % 26) + out
        n //= 26
    return out


def _inverted(name: str) -> str:
    """"Jane Smith" -> "Smith, Jane"; already-inverted names pass through."""
    name = name.strip()
    if not name:
        return "Unknown"
    if "," in name:
        return name
    fields = name.split()
    if len(fields) == 1:
        return fields[0]
    return f"{fields[-1]}, {' '.join(fields[:-1])}"


def _authors(ref: Reference) -> List[str]:
    if ref.author_names:
        return list(ref.author_names)
    return [_inverted(a) for a in split_author_string(ref.authors)]


def _key_year(year: str) -> str:
    match = re.search(r"\d{4}", year or "")
    return match.group(0) if match else "nd"


def _key_surname(author: str) -> str:
    author = author.split(",", 1)[0] if "," in author else author
    fields = author.split()
    return fields[-1] if fields else "Unknown"


def _sanitize_key(key: str) -> str:
    key = re.sub(r"[^A-Za-z0-9]", "", key)
    if key and key[0].isdigit():
        key = "Ref" + key
    return key[:MAX_KEY_LENGTH]


def citation_key_base(ref: Reference) -> str:
    authors = _authors(ref)
    year = _key_year(ref.year)
    base = _sanitize_key(_key_surname(authors[0] if authors else "") + year)
    return base or "Ref" + year


def bibtex_keys(refs: List[Reference]) -> List[str]:
    """Unique citation keys for a batch, in input order."""
    keys = []
    seen = {}
    used = set()
    for i, ref in enumerate(refs):
        base = citation_key_base(ref) or f"Ref{i + 1}"
        dup = seen.get(base, 0)
        key = base if dup == 0 else base + alpha_suffix(dup)
        while key in used:
            dup += 1
            key = base + alpha_suffix(dup)
        seen[base] = dup + 1
        used.add(key)
        keys.append(key)
    return keys


def bibtex_entry(key: str, ref: Reference) -> str:
    lines = [f"@article{{{key},"]
    fields = [
        ("author", " and ".join(_authors(ref))),
        ("title", ref.title),
        ("journal", ref.journal),
        ("year", ref.year),
        ("doi", ref.doi),
        ("pmid", ref.pmid),
    ]
    for name, value in fields:
        value = latex_escape(value)
        if value:
            lines.append(f"  {name} = {{{value}}},")
    lines.append("}")
    return "\n".join(lines)


def generate_bibtex(refs: List[Reference]) -> str:
    """BibTeX text for a batch of references; empty string for no references."""
    if not refs:
        return ""
    keys = bibtex_keys(refs)
    return "\n\n".join(bibtex_entry(k, r) for k, r in zip(keys, refs)) + "\n"
