"""
Query construction for GitHub's code and issue search grammar.

All functions are pure. Every query is scoped to a single repository
with exactly one ``repo:`` qualifier.
"""

from __future__ import annotations

from models import SearchMode


def repo_qualifier(owner: str, repo: str) -> str:
    return f"repo:{owner}/{repo}"


def _join(*parts: str | None) -> str:
    """Join query tokens, dropping empty ones so an empty query leaves no stray spaces."""
    return " ".join(part for part in parts if part)


def _quote_if_spaced(term: str) -> str:
    if any(ch.isspace() for ch in term):
        return f'"{term}"'
    return term


def build_search_query(query: str, mode: SearchMode, owner: str, repo: str) -> str:
    """Translate a searchFiles intent into one code-search query string.

    - filename: ``filename:<q>``, quoted when the query contains whitespace
    - path: ``<q> in:path``
    - content: ``<q>`` alone, content is the default match target
    - all: ``<q> in:file,path``; the grammar has no OR across field
      qualifiers, so this is the closest single-query approximation

    An empty query is allowed and lists every file the qualifiers match.
    """
    scope = repo_qualifier(owner, repo)
    mode = SearchMode(mode)

    if mode is SearchMode.FILENAME:
        term = f"filename:{_quote_if_spaced(query)}" if query else "filename:"
        return _join(term, scope)
    if mode is SearchMode.PATH:
        return _join(query, "in:path", scope)
    if mode is SearchMode.CONTENT:
        return _join(query, scope)
    return _join(query, "in:file,path", scope)


def build_code_query(query: str, owner: str, repo: str, language: str | None = None) -> str:
    """Content search with an optional ``language:`` filter."""
    language_qualifier = f"language:{language}" if language else None
    return _join(query, repo_qualifier(owner, repo), language_qualifier)


def build_issue_query(query: str, owner: str, repo: str) -> str:
    return _join(query, "is:issue", repo_qualifier(owner, repo))


def baseline_query(owner: str, repo: str) -> str:
    """Known-good query used to check whether the repository is indexed at all."""
    return _join(repo_qualifier(owner, repo), "extension:md")
