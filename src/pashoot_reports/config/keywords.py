"""Load the keyword catalogs that drive report classification."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

KEYWORDS_PATH = Path(__file__).resolve().parent / "keywords.yaml"


@dataclass(frozen=True)
class KeywordCatalog:
    """Keyword lists keyed by purpose. Ordered mappings keep file order."""

    non_operating: tuple[str, ...]
    investing: tuple[str, ...]
    financing: tuple[str, ...]
    travel: tuple[str, ...]
    entertainment: tuple[str, ...]
    contractor: tuple[str, ...]
    cogs: tuple[str, ...]
    fixed_costs: tuple[str, ...]
    variable_costs: tuple[str, ...]
    tax_deductions: tuple[tuple[str, tuple[str, ...]], ...]


def _keyword_list(value: Any, where: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"{where} must be a list of keywords")
    keywords: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValueError(f"{where}: invalid keyword {item!r}")
        keywords.append(item.strip().lower())
    return tuple(keywords)


def _section(data: dict[str, Any], key: str, where: str) -> dict[str, Any]:
    section = data.get(key)
    if not isinstance(section, dict):
        raise ValueError(f"{where}: {key} must be a mapping")
    return section


def parse_keyword_catalog(data: dict[str, Any], where: str = "keywords") -> KeywordCatalog:
    """Validate raw YAML data and build a KeywordCatalog."""
    cash_flow = _section(data, "cash_flow", where)
    travel = _section(data, "travel_entertainment", where)
    break_even = _section(data, "break_even", where)
    deductions = _section(data, "tax_deductions", where)

    return KeywordCatalog(
        non_operating=_keyword_list(
            cash_flow.get("non_operating"), f"{where}: cash_flow.non_operating"
        ),
        investing=_keyword_list(cash_flow.get("investing"), f"{where}: cash_flow.investing"),
        financing=_keyword_list(cash_flow.get("financing"), f"{where}: cash_flow.financing"),
        travel=_keyword_list(travel.get("travel"), f"{where}: travel_entertainment.travel"),
        entertainment=_keyword_list(
            travel.get("entertainment"), f"{where}: travel_entertainment.entertainment"
        ),
        contractor=_keyword_list(data.get("contractor"), f"{where}: contractor"),
        cogs=_keyword_list(data.get("cogs"), f"{where}: cogs"),
        fixed_costs=_keyword_list(break_even.get("fixed"), f"{where}: break_even.fixed"),
        variable_costs=_keyword_list(break_even.get("variable"), f"{where}: break_even.variable"),
        tax_deductions=tuple(
            (str(name), _keyword_list(words, f"{where}: tax_deductions.{name}"))
            for name, words in deductions.items()
        ),
    )


@lru_cache
def load_keyword_catalog(path: Path | None = None) -> KeywordCatalog:
    """Load and cache the keyword catalog shipped with the package."""
    source = path or KEYWORDS_PATH
    raw = source.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{source.name}: top level must be a mapping")
    return parse_keyword_catalog(data, where=source.name)
