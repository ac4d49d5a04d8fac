# app/domain/scoring.py
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal
from typing import List, Optional, Tuple

from app.domain.limits import RECONCILIATION_TOLERANCE
from app.domain.models import Company, ScoreBreakdown, ScoreComponent, ScoreLineItem

log = logging.getLogger("cosmeticguard.score")

_TENTH = Decimal("0.1")


def _dec(x: float | int | None) -> Decimal:
    # lewat str() supaya 16.25 tetap 16.25 (bukan 16.2499999...)
    return Decimal(str(x or 0))


def round1(x: float | int | None) -> float:
    """Pembulatan satu desimal, half-up (16.25 -> 16.3)."""
    return float(_dec(x).quantize(_TENTH, rounding=ROUND_HALF_UP))


def _q1(x: Decimal) -> Decimal:
    return x.quantize(_TENTH, rounding=ROUND_HALF_UP)


def apportion(values: List[Decimal], total: Decimal) -> List[Decimal]:
    """
    Largest-remainder: bulatkan tiap nilai ke 0.1 sehingga jumlahnya tepat `total`
    (`total` sudah kelipatan 0.1). Sisa seri dimenangkan urutan input.
    """
    floors = [v.quantize(_TENTH, rounding=ROUND_FLOOR) for v in values]
    missing = int((total - sum(floors, Decimal(0))) / _TENTH)
    missing = max(0, min(missing, len(values)))
    by_remainder = sorted(range(len(values)), key=lambda i: values[i] - floors[i], reverse=True)
    for i in by_remainder[:missing]:
        floors[i] += _TENTH
    return floors


@dataclass(frozen=True)
class ComponentSpec:
    name: str
    field: str
    weight: Decimal
    good_at: float
    description: str


COMPONENTS: Tuple[ComponentSpec, ...] = (
    ComponentSpec("Cancellation History", "cancel_score", Decimal("0.40"), 70,
                  "Brand cancellation performance"),
    ComponentSpec("Category Portfolio", "category_score", Decimal("0.25"), 50,
                  "Product category diversity"),
    ComponentSpec("Business Stability", "stability_score", Decimal("0.20"), 80,
                  "Operational consistency"),
    ComponentSpec("Market Presence", "presence_score", Decimal("0.15"), 60,
                  "Market footprint and scale"),
)

FALLBACK_GOOD_AT = 70


@dataclass(frozen=True)
class BonusRules:
    """Batas tampilan untuk memecah delta bonus/penalti jadi baris-baris."""
    recent_activity_cap: float = 3.0
    tenure_cap: float = 3.0
    tenure_min_years: float = 5.0
    recent_window_days: int = 365


def brand_age_years(company: Company, today: dt.date) -> Optional[float]:
    if not company.first_notif:
        return None
    days = (today - company.first_notif).days
    return max(0.0, round(days / 365.25, 1))


def has_recent_products(company: Company, today: dt.date, window_days: int) -> bool:
    if not company.last_notif:
        return False
    return (today - company.last_notif).days <= window_days


def itemize_delta(delta: float, *, recent: bool, age_years: Optional[float],
                  rules: BonusRules) -> Tuple[List[ScoreLineItem], List[ScoreLineItem]]:
    """
    Pecah satu delta tersimpan jadi baris bonus/penalti.
    Jumlah baris selalu tepat sama dengan delta (dibulatkan 1 desimal).
    """
    d = _dec(delta).quantize(_TENTH, rounding=ROUND_HALF_UP)
    bonuses: List[ScoreLineItem] = []
    penalties: List[ScoreLineItem] = []

    if d < 0:
        penalties.append(ScoreLineItem(
            name="Risk Adjustment",
            points=float(d),
            description="Adjustments based on risk factors and compliance issues",
        ))
        return bonuses, penalties

    remaining = d
    if recent and remaining > 0:
        pts = min(_dec(rules.recent_activity_cap).quantize(_TENTH, rounding=ROUND_HALF_UP), remaining)
        bonuses.append(ScoreLineItem(
            name="Recent Product Activity",
            points=float(pts),
            description="Active in launching new products recently",
        ))
        remaining -= pts

    if age_years is not None and age_years >= rules.tenure_min_years and remaining > 0:
        pts = min(_dec(rules.tenure_cap).quantize(_TENTH, rounding=ROUND_HALF_UP), remaining)
        bonuses.append(ScoreLineItem(
            name="Established Brand",
            points=float(pts),
            description=f"{age_years:.1f} years of market experience",
        ))
        remaining -= pts

    if remaining > 0:
        bonuses.append(ScoreLineItem(
            name="Additional Performance Bonus",
            points=float(remaining),
            description="Extra points for strong performance indicators",
        ))
    return bonuses, penalties


class ScoreCompiler:
    """
    Rekonstruksi breakdown skor reliabilitas dari skor komponen tersimpan.
    Nilai tersimpan (final score) adalah sumber kebenaran; selisih dengan
    hasil hitung ulang hanya dilaporkan, tidak pernah dikoreksi.
    """

    def __init__(self, rules: BonusRules | None = None, today: dt.date | None = None):
        self.rules = rules or BonusRules()
        self._today = today

    @property
    def today(self) -> dt.date:
        return self._today or dt.date.today()

    def compile(self, company: Company) -> ScoreBreakdown:
        if not company.has_components:
            raise ValueError(f"company {company.name!r} has no stored component scores")

        raws = [_dec(getattr(company, spec.field)) for spec in COMPONENTS]
        weighted = [raw * spec.weight for raw, spec in zip(raws, COMPONENTS)]
        base = sum(weighted, Decimal(0))
        delta = _dec(company.bonus_penalty)
        final = _dec(company.reliability_score)

        # base dan base+delta dibulatkan sekali; komponen dan baris bonus/penalti
        # menjumlah tepat ke dua angka itu
        shown_base = _q1(base)
        shown_delta = _q1(base + delta) - shown_base
        components = [
            ScoreComponent(
                name=spec.name,
                weight=int(spec.weight * 100),
                raw_score=round1(raw),
                weighted_score=float(part),
                description=spec.description,
                is_good=float(raw) >= spec.good_at,
            )
            for spec, raw, part in zip(COMPONENTS, raws, apportion(weighted, shown_base))
        ]

        error = (base + delta) - final
        reconciled = abs(error) <= _dec(RECONCILIATION_TOLERANCE)
        if not reconciled:
            log.warning(
                "reconciliation mismatch company=%r stored_final=%s recomputed=%s error=%s",
                company.name, final, base + delta, error,
            )

        today = self.today
        age = brand_age_years(company, today)
        recent = has_recent_products(company, today, self.rules.recent_window_days)
        bonuses, penalties = itemize_delta(float(shown_delta), recent=recent, age_years=age, rules=self.rules)

        return ScoreBreakdown(
            company=company.name,
            final_score=round1(final),
            base_score=float(shown_base),
            components=tuple(components),
            bonuses=tuple(bonuses),
            penalties=tuple(penalties),
            bonuses_and_penalties=float(shown_delta),
            brand_age_years=age,
            has_recent_products=recent,
            reconciled=reconciled,
            reconciliation_error=round1(error),
            explanation=(
                f"Score computed from {company.name}'s stored component scores "
                f"({company.total_products} registered products) plus adjustments."
            ),
        )

    def fallback(self, company_name: str, product_score: float) -> ScoreBreakdown:
        """Breakdown satu komponen saat data brand tidak tersedia (degraded)."""
        score = round1(product_score)
        return ScoreBreakdown(
            company=company_name,
            final_score=score,
            base_score=score,
            components=(ScoreComponent(
                name="Product Reliability Score",
                weight=100,
                raw_score=score,
                weighted_score=score,
                description="Based on available product data",
                is_good=score >= FALLBACK_GOOD_AT,
            ),),
            degraded=True,
            explanation=(
                "Detailed brand analysis not available. "
                f"Showing product-level reliability score of {score}/100."
            ),
        )
