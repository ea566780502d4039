"""Premium calculation - bond amount to premium, down payment and remaining balance"""

from decimal import Decimal

from bond_engine.config import DEFAULT_ORG_CONFIG, OrgConfig
from bond_engine.domain.models import BondCase, CommissionSplit, PremiumQuote
from bond_engine.utils.money import ZERO, MoneyLike, is_positive, round_money, to_money


def compute_premium(
    bond_amount: MoneyLike,
    config: OrgConfig = DEFAULT_ORG_CONFIG,
    premium_override: MoneyLike = None,
    down_override: MoneyLike = None,
) -> PremiumQuote:
    """
    Derive premium, down payment and remaining balance for a bond.

    Rules:
    - Positive premium_override wins, else premium = bond * premium_rate
    - Positive down_override wins, else down = premium * down_payment_fraction
    - remaining = premium - down, never below zero
    - bond_amount <= 0 (or absent) is the "no quote yet" state: all zeros

    Example:
        $50,000 bond at 12% -> premium $6,000, down $3,000, remaining $3,000
    """
    bond = to_money(bond_amount)
    if bond <= 0:
        return PremiumQuote(premium=ZERO, down_payment=ZERO, remaining=ZERO)

    if is_positive(premium_override):
        premium = to_money(premium_override)
    else:
        premium = round_money(bond * config.premium_rate)

    if is_positive(down_override):
        down_payment = to_money(down_override)
    else:
        down_payment = round_money(premium * config.down_payment_fraction)

    remaining = max(premium - down_payment, ZERO)
    return PremiumQuote(premium=premium, down_payment=down_payment, remaining=remaining)


def quote_case(case: BondCase, config: OrgConfig = DEFAULT_ORG_CONFIG) -> PremiumQuote:
    """Quote a case using whatever premium/down the user has set on it"""
    return compute_premium(
        case.bond_amount,
        config,
        premium_override=case.premium,
        down_override=case.down_payment,
    )


def case_premium(case: BondCase, config: OrgConfig = DEFAULT_ORG_CONFIG) -> Decimal:
    """The premium a case is billed: the stored one if set, else the derived default"""
    if is_positive(case.premium):
        return to_money(case.premium)
    return compute_premium(case.bond_amount, config).premium


def commission_split(
    bond_amount: MoneyLike,
    config: OrgConfig = DEFAULT_ORG_CONFIG,
    jail_fee: MoneyLike = None,
) -> CommissionSplit:
    """
    Break the premium down into agent, general agent, build-up fund and jail shares.

    Every share is a percentage of the bond amount; the jail share also
    carries a flat per-case fee.
    """
    bond = max(to_money(bond_amount), ZERO)
    premium = round_money(bond * config.premium_rate)
    agent = round_money(bond * config.agent_rate)
    general_agent = round_money(bond * config.general_agent_rate)
    build_up_fund = round_money(bond * config.build_up_fund_rate)
    jail = round_money(bond * config.jail_rate) + to_money(jail_fee) if bond > 0 else ZERO

    return CommissionSplit(
        premium=premium,
        agent=agent,
        general_agent=general_agent,
        build_up_fund=build_up_fund,
        jail=jail,
    )
