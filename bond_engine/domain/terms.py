"""Term planning - suggested installment options for the remaining balance"""

from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Tuple

from bond_engine.config import DEFAULT_ORG_CONFIG, OrgConfig
from bond_engine.domain.models import PremiumQuote, Recommendation, TermOption
from bond_engine.utils.date_utils import MONTHLY, WEEKLY
from bond_engine.utils.money import ZERO, MoneyLike, round_money, to_money

# (number of installments, label)
WEEKLY_TERMS: Tuple[Tuple[int, str], ...] = ((4, "4 wk"), (6, "6 wk"), (10, "10 wk"))
MONTHLY_TERMS: Tuple[Tuple[int, str], ...] = ((3, "3 mo"), (6, "6 mo"), (9, "9 mo"))

# Affordability ceilings per installment
MONTHLY_CEILING = Decimal("800")
WEEKLY_CEILINGS: Tuple[Tuple[Decimal, Decimal], ...] = (
    (Decimal("10000"), Decimal("75")),
    (Decimal("50000"), Decimal("125")),
)
WEEKLY_CEILING_DEFAULT = Decimal("200")
LOW_DOWN_PERCENT = Decimal("30")
LOW_DOWN_FACTOR = Decimal("0.75")


def is_high_bond(bond_amount: MoneyLike, config: OrgConfig = DEFAULT_ORG_CONFIG) -> bool:
    return to_money(bond_amount) >= config.high_bond_threshold


def suggest_terms(
    bond_amount: MoneyLike,
    remaining: MoneyLike,
    config: OrgConfig = DEFAULT_ORG_CONFIG,
) -> List[TermOption]:
    """
    Propose three installment options for the remaining balance.

    - Bonds >= $100k: monthly over 3, 6, 9 months
    - Smaller bonds: weekly over 4, 6, 10 weeks
    - Nothing remaining: amounts are 0, labels and cadence still returned
    """
    if is_high_bond(bond_amount, config):
        frequency, terms = MONTHLY, MONTHLY_TERMS
    else:
        frequency, terms = WEEKLY, WEEKLY_TERMS

    balance = to_money(remaining)
    return [
        TermOption(
            label=label,
            amount=round_money(balance / count) if balance > 0 else ZERO,
            frequency=frequency,
            count=count,
        )
        for count, label in terms
    ]


def _affordability_ceiling(bond: Decimal, quote: PremiumQuote, monthly: bool) -> Decimal:
    if monthly:
        ceiling = MONTHLY_CEILING
    else:
        ceiling = WEEKLY_CEILING_DEFAULT
        for upper_bound, tier_ceiling in WEEKLY_CEILINGS:
            if bond < upper_bound:
                ceiling = tier_ceiling
                break

    down_percent = (
        quote.down_payment / quote.premium * 100 if quote.premium > 0 else Decimal("50")
    )
    # Thin down payment means tight cash flow: ask for less per installment
    if down_percent < LOW_DOWN_PERCENT:
        ceiling *= LOW_DOWN_FACTOR
    return ceiling


def recommend_term(
    bond_amount: MoneyLike,
    quote: PremiumQuote,
    terms: Sequence[TermOption],
    config: OrgConfig = DEFAULT_ORG_CONFIG,
) -> Optional[Recommendation]:
    """
    Rule-based pick among the three suggested terms.

    Chooses the shortest term whose installment fits under the tier's
    affordability ceiling, otherwise the longest (cheapest) one.
    Returns None when there is nothing to finance.
    """
    bond = to_money(bond_amount)
    if bond <= 0 or quote.remaining <= 0 or not terms:
        return None

    monthly = is_high_bond(bond, config)
    ceiling = _affordability_ceiling(bond, quote, monthly)
    suffix = "/mo" if monthly else "/wk"

    def dollars(option: TermOption) -> str:
        return f"${option.amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP)}{suffix}"

    reasons = (
        "Shortest term, {amount} is affordable",
        "Balanced, {amount} fits most budgets",
        "Lowest payment at {amount}",
    )
    for position, option in enumerate(terms[:3]):
        if option.amount <= ceiling:
            return Recommendation(
                index=position + 1,
                reason=reasons[position].format(amount=dollars(option)),
            )

    longest = terms[min(len(terms), 3) - 1]
    return Recommendation(index=min(len(terms), 3), reason=reasons[2].format(amount=dollars(longest)))
