# app/domain/synonyms.py
from __future__ import annotations

import logging
import os
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, Mapping, Tuple

import yaml

log = logging.getLogger("cosmeticguard.synonyms")

DEFAULT_TABLE: Dict[str, Tuple[str, ...]] = {
    "moisturizer": ("pelembap", "moisturizer", "moisturiser"),
    "cleanser": ("pembersih", "cleanser"),
    "serum": ("serum",),
    "cream": ("krim", "cream"),
    "oil": ("minyak", "oil"),
    "mask": ("masker", "mask"),
    "toner": ("toner",),
    "lotion": ("losyen", "lotion"),
    "soap": ("sabun", "soap"),
    "shampoo": ("syampu", "shampoo"),
    "conditioner": ("pelembap rambut", "conditioner"),
    "lipstick": ("gincu", "lipstick"),
    "foundation": ("asas", "foundation"),
    "powder": ("bedak", "powder"),
    "perfume": ("minyak wangi", "perfume", "perfum"),
    "deodorant": ("deodoran", "deodorant"),
    "skincare": ("penjagaan kulit", "skincare", "skin care"),
    "makeup": ("solekan", "makeup", "make-up", "kosmetik"),
    "haircare": ("penjagaan rambut", "haircare", "hair care"),
    "bodycare": ("penjagaan badan", "bodycare", "body care"),
    "fragrance": ("minyak wangi", "fragrance", "perfume"),
    "beauty": ("kecantikan", "beauty"),
    "natural": ("semula jadi", "natural"),
    "organic": ("organik", "organic"),
    "whitening": ("pemutih", "whitening", "pencerah"),
    "anti-aging": ("anti-penuaan", "anti-aging", "anti-ageing"),
}


class SynonymTable(Mapping[str, Tuple[str, ...]]):
    """
    Tabel read-only: istilah kanonik -> varian (semua lower-case).
    Dibuat sekali lalu di-inject ke QueryExpander.
    """

    def __init__(self, entries: Mapping[str, object]):
        cleaned: Dict[str, Tuple[str, ...]] = {}
        for key, variants in entries.items():
            k = str(key).strip().lower()
            if not k:
                continue
            if isinstance(variants, str):
                variants = [variants]
            vs = tuple(dict.fromkeys(str(v).strip().lower() for v in (variants or []) if str(v).strip()))
            cleaned[k] = vs
        self._entries = MappingProxyType(cleaned)

    def __getitem__(self, key: str) -> Tuple[str, ...]:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def default(cls) -> "SynonymTable":
        return cls(DEFAULT_TABLE)

    @classmethod
    def from_yaml(cls, cfg_path: str | None = None) -> "SynonymTable":
        path = cfg_path or os.getenv("SYNONYMS_CFG", "config/synonyms.yaml")
        try:
            with open(path, "r", encoding="utf-8") as f:
                cfg = yaml.safe_load(f) or {}
            if not isinstance(cfg, dict) or not cfg:
                raise ValueError("expected a non-empty mapping")
        except (OSError, yaml.YAMLError, ValueError) as e:
            # fallback aman saat YAML invalid/missing
            log.warning("load %s failed: %s; using built-in synonym table", path, e)
            return cls.default()
        return cls(cfg)


class QueryExpander:
    def __init__(self, table: SynonymTable):
        self.table = table

    def expand(self, query: str) -> FrozenSet[str]:
        """
        Query -> himpunan term setara (query asli + semua varian entry yang cocok).
        Entry cocok jika query memuat salah satu varian, atau varian memuat query.
        """
        q = (query or "").lower()
        terms = {q}
        for canonical, variants in self.table.items():
            if any(v in q or q in v for v in variants):
                terms.update(variants)
                terms.add(canonical)
        return frozenset(terms)
