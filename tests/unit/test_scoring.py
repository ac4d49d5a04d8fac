# tests/unit/test_scoring.py
import datetime as dt
import logging
from decimal import Decimal

import pytest

from app.domain.models import Company
from app.domain.scoring import BonusRules, ScoreCompiler, apportion, itemize_delta, round1

TODAY = dt.date(2024, 12, 1)


def _company(**kw):
    base = dict(
        name="Acme Beauty", num_approved=40, num_cancelled=2, reliability_score=82.3,
        cancel_score=85.0, category_score=65.0, stability_score=82.5, presence_score=68.0,
        bonus_penalty=5.3, first_notif=dt.date(2015, 1, 1), last_notif=dt.date(2024, 5, 1),
    )
    base.update(kw)
    return Company(**base)

def test_round1_half_up():
    assert round1(16.25) == 16.3
    assert round1(76.95) == 77.0
    assert round1(None) == 0.0

def test_compile_reference_example():
    bd = ScoreCompiler(today=TODAY).compile(_company())
    assert bd.base_score == 77.0
    assert bd.final_score == 82.3
    assert [c.weight for c in bd.components] == [40, 25, 20, 15]
    assert [c.weighted_score for c in bd.components] == [34.0, 16.3, 16.5, 10.2]
    assert [c.is_good for c in bd.components] == [True, True, True, True]
    assert bd.reconciled and not bd.degraded

def test_compile_line_items_sum_to_final():
    bd = ScoreCompiler(today=TODAY).compile(_company())
    total = sum(c.weighted_score for c in bd.components)
    total += sum(b.points for b in bd.bonuses)
    total -= sum(abs(p.points) for p in bd.penalties)
    assert round(abs(total - bd.final_score), 6) <= 0.1

@pytest.mark.parametrize("cancel, category, stability, presence, delta, final", [
    (70.4, 65.0, 80.3, 67.0, 0.0, 70.5),
    (33.33, 47.77, 91.19, 12.34, 2.46, 47.9),
    (88.88, 77.77, 66.66, 55.55, -3.33, 73.25),
    (50.12, 50.0, 50.0, 50.0, 0.049, 50.196),
    (12.5, 99.9, 0.05, 43.21, -7.77, 28.6),
])
def test_rounded_breakdown_adds_up(cancel, category, stability, presence, delta, final):
    c = _company(cancel_score=cancel, category_score=category, stability_score=stability,
                 presence_score=presence, bonus_penalty=delta, reliability_score=final)
    bd = ScoreCompiler(today=TODAY).compile(c)
    assert bd.reconciled
    weighted = sum(comp.weighted_score for comp in bd.components)
    assert round(weighted, 1) == bd.base_score
    lines = sum(b.points for b in bd.bonuses) - sum(abs(p.points) for p in bd.penalties)
    assert round(lines, 1) == bd.bonuses_and_penalties
    assert round(abs(weighted + lines - bd.final_score), 6) <= 0.1

def test_apportion_hits_target_total():
    parts = apportion([Decimal("28.16"), Decimal("16.25"), Decimal("16.06"), Decimal("10.05")], Decimal("70.5"))
    assert parts == [Decimal("28.2"), Decimal("16.2"), Decimal("16.1"), Decimal("10.0")]

def test_compile_itemizes_recent_and_tenure():
    bd = ScoreCompiler(today=TODAY).compile(_company())
    assert bd.has_recent_products is True
    assert bd.brand_age_years == pytest.approx(9.9)
    assert [(b.name, b.points) for b in bd.bonuses] == [
        ("Recent Product Activity", 3.0), ("Established Brand", 2.3),
    ]
    assert bd.penalties == ()

def test_compile_negative_delta_is_single_penalty():
    c = _company(reliability_score=72.9, bonus_penalty=-4.0)
    bd = ScoreCompiler(today=TODAY).compile(c)
    assert bd.bonuses == ()
    assert [(p.name, p.points) for p in bd.penalties] == [("Risk Adjustment", -4.0)]
    assert bd.bonuses_and_penalties == -4.0
    assert bd.reconciled

def test_compile_flags_mismatch_without_correcting(caplog):
    c = _company(reliability_score=90.0)
    with caplog.at_level(logging.WARNING, logger="cosmeticguard.score"):
        bd = ScoreCompiler(today=TODAY).compile(c)
    assert bd.reconciled is False
    assert bd.final_score == 90.0
    assert bd.reconciliation_error == -7.8
    assert "reconciliation mismatch" in caplog.text

def test_compile_requires_components():
    with pytest.raises(ValueError):
        ScoreCompiler(today=TODAY).compile(Company(name="Empty", reliability_score=50.0))

def test_itemize_remainder_goes_to_additional_bonus():
    bonuses, penalties = itemize_delta(8.0, recent=True, age_years=12.0, rules=BonusRules())
    assert [(b.name, b.points) for b in bonuses] == [
        ("Recent Product Activity", 3.0),
        ("Established Brand", 3.0),
        ("Additional Performance Bonus", 2.0),
    ]
    assert penalties == []

def test_itemize_young_inactive_brand():
    bonuses, _ = itemize_delta(5.3, recent=False, age_years=2.0, rules=BonusRules())
    assert [(b.name, b.points) for b in bonuses] == [("Additional Performance Bonus", 5.3)]

def test_itemize_zero_delta():
    assert itemize_delta(0.0, recent=True, age_years=10.0, rules=BonusRules()) == ([], [])

def test_itemize_custom_caps():
    rules = BonusRules(recent_activity_cap=1.0, tenure_cap=1.0)
    bonuses, _ = itemize_delta(5.3, recent=True, age_years=6.0, rules=rules)
    assert sum(b.points for b in bonuses) == pytest.approx(5.3)
    assert bonuses[0].points == 1.0

def test_fallback_is_single_component():
    bd = ScoreCompiler().fallback("Mystery Co", 64.04)
    assert bd.degraded is True
    assert bd.final_score == bd.base_score == 64.0
    assert len(bd.components) == 1
    comp = bd.components[0]
    assert (comp.name, comp.weight, comp.is_good) == ("Product Reliability Score", 100, False)
