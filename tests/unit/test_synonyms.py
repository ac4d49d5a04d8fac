# tests/unit/test_synonyms.py
import pytest

from app.domain.synonyms import QueryExpander, SynonymTable


def test_expand_moisturizer_is_bilingual(expander):
    assert {"moisturizer", "moisturiser", "pelembap"} <= expander.expand("moisturizer")

def test_expand_always_contains_lowercased_query(expander):
    assert "glowy thing" in expander.expand("Glowy Thing")
    assert expander.expand("zzz") == frozenset({"zzz"})

def test_expand_matches_variant_inside_query(expander):
    terms = expander.expand("Krim Malam")
    assert {"krim malam", "krim", "cream"} <= terms

def test_expand_matches_query_inside_variant(expander):
    # "pelemb" adalah substring dari varian "pelembap"
    assert "moisturizer" in expander.expand("pelemb")

def test_expand_is_stable_for_key_members(expander):
    for query in ("moisturizer", "cream"):
        terms = expander.expand(query)
        for member in terms:
            if member in expander.table:
                assert expander.expand(member) == terms

def test_table_is_read_only():
    table = SynonymTable.default()
    with pytest.raises(TypeError):
        table["new"] = ("x",)

def test_table_normalizes_entries():
    table = SynonymTable({" Serum ": ["SERUM", "serum", " Essence "], "": ["x"]})
    assert dict(table) == {"serum": ("serum", "essence")}

def test_from_yaml_reads_file(tmp_path):
    cfg = tmp_path / "syn.yaml"
    cfg.write_text("sunscreen:\n  - pelindung matahari\n  - sunscreen\n", encoding="utf-8")
    table = SynonymTable.from_yaml(str(cfg))
    assert table["sunscreen"] == ("pelindung matahari", "sunscreen")
    assert "pelindung matahari" in QueryExpander(table).expand("sunscreen")

def test_from_yaml_missing_falls_back_to_default(tmp_path):
    table = SynonymTable.from_yaml(str(tmp_path / "nope.yaml"))
    assert "moisturizer" in table

def test_from_yaml_invalid_falls_back_to_default(tmp_path):
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("- just\n- a list\n", encoding="utf-8")
    assert len(SynonymTable.from_yaml(str(cfg))) == len(SynonymTable.default())

def test_shipped_config_matches_default():
    assert dict(SynonymTable.from_yaml("config/synonyms.yaml")) == dict(SynonymTable.default())
