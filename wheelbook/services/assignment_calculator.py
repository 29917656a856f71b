"""Pure money arithmetic for assignment, early close, and roll.

All inputs and outputs are ``Decimal``. Results keep full precision; the
``quantize_*`` helpers are applied only when values are written to storage.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

SHARES_PER_CONTRACT = 100

CENTS = Decimal("0.01")
BASIS_PLACES = Decimal("0.0001")


def quantize_money(value: Decimal) -> Decimal:
    """Round a currency amount to cents, half up."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def quantize_basis(value: Decimal) -> Decimal:
    """Round a per-share cost basis to 4 places, half up."""
    return Decimal(value).quantize(BASIS_PLACES, rounding=ROUND_HALF_UP)


def shares_for(contracts: int) -> int:
    """Number of shares controlled by ``contracts`` option contracts."""
    return contracts * SHARES_PER_CONTRACT


def put_cost_basis(strike: Decimal, premium: Decimal, shares: int) -> tuple[Decimal, Decimal]:
    """Cost basis of shares acquired through PUT assignment.

    Args:
        strike: PUT strike price per share
        premium: Total PUT premium collected
        shares: Shares acquired

    ``total_cost = cost_basis * shares`` holds exactly on these unrounded
    values, and total cost equals strike * shares - premium. Once stored,
    the basis is rounded to 4 places and the total to cents independently,
    so the stored basis times shares may differ from the stored total by a
    rounding residue (e.g. 149.6667 * 300 vs 44900.00). The total is the
    figure realized P&L is computed from.

    Returns:
        Tuple of (cost_basis per share, total_cost), unrounded

    Raises:
        ValueError: If shares is not positive

    Example:
        >>> put_cost_basis(Decimal("150"), Decimal("250"), 100)
        (Decimal('147.5'), Decimal('14750.0'))
    """
    if shares <= 0:
        raise ValueError("Shares must be positive")
    cost_basis = Decimal(strike) - Decimal(premium) / Decimal(shares)
    return cost_basis, cost_basis * shares


def call_realized_gain_loss(
    strike: Decimal,
    shares: int,
    put_premium: Decimal,
    call_premium: Decimal,
    total_cost: Decimal,
) -> Decimal:
    """Realized P&L when a covered CALL is assigned and the shares are called away.

    Example:
        >>> call_realized_gain_loss(
        >>>     Decimal("155"), 100, Decimal("250"), Decimal("200"), Decimal("14750")
        >>> )
        Decimal('1200')
    """
    proceeds = Decimal(strike) * shares
    return proceeds + Decimal(put_premium) + Decimal(call_premium) - Decimal(total_cost)


def early_close_net_pl(premium: Decimal, close_premium: Decimal) -> Decimal:
    """Net P&L of buying back an option: collected minus paid."""
    return Decimal(premium) - Decimal(close_premium)


def roll_net_credit(new_premium: Decimal, close_premium: Decimal) -> Decimal:
    """Net credit of a roll; negative means a debit."""
    return Decimal(new_premium) - Decimal(close_premium)


def format_roll_note(new_expiration, new_strike: Decimal, net_credit: Decimal) -> str:
    """Annotation appended to the notes of a rolled trade.

    Example:
        >>> format_roll_note(date(2026, 4, 17), Decimal("145"), Decimal("-150"))
        'Rolled to new expiration 2026-04-17 at $145.00 (net debit: $150.00)'
    """
    label = "net credit" if net_credit >= 0 else "net debit"
    amount = quantize_money(abs(Decimal(net_credit)))
    return (
        f"Rolled to new expiration {new_expiration.isoformat()} "
        f"at ${quantize_money(new_strike)} ({label}: ${amount})"
    )


def manual_close_realized(
    closing_price: Decimal,
    shares: int,
    put_premium: Decimal,
    call_trades: Iterable,
    total_cost: Decimal,
) -> Decimal:
    """Realized P&L when a position's shares are sold outright.

    Covered-call history is folded in: SELL_TO_OPEN premiums are added,
    BUY_TO_CLOSE premiums and early-close buyback premiums are subtracted.

    Args:
        closing_price: Sale price per share
        shares: Shares sold
        put_premium: Premium of the PUT whose assignment created the position
        call_trades: CALL trades linked to the position
        total_cost: Stored total cost of the position

    Returns:
        Realized gain (positive) or loss (negative), unrounded
    """
    collected = Decimal("0")
    paid = Decimal("0")
    for call in call_trades:
        if call.action == "SELL_TO_OPEN":
            collected += Decimal(call.premium)
            if call.close_premium is not None:
                paid += Decimal(call.close_premium)
        elif call.action == "BUY_TO_CLOSE":
            paid += Decimal(call.premium)
    return (
        Decimal(closing_price) * shares
        + Decimal(put_premium)
        + collected
        - paid
        - Decimal(total_cost)
    )


def unrealized_pnl(
    current_value: Optional[Decimal], total_cost: Decimal
) -> Optional[Decimal]:
    """Paper gain or loss of an OPEN position at its current market value.

    Returns None when no positive market value is known.

    Example:
        >>> unrealized_pnl(Decimal("15200"), Decimal("14750"))
        Decimal('450')
    """
    if current_value is None or Decimal(current_value) <= 0:
        return None
    return Decimal(current_value) - Decimal(total_cost)


def unrealized_pnl_pct(
    current_value: Optional[Decimal], total_cost: Decimal
) -> Optional[Decimal]:
    """Unrealized P&L as a percentage of total cost, or None without a value."""
    pnl = unrealized_pnl(current_value, total_cost)
    if pnl is None:
        return None
    if Decimal(total_cost) <= 0:
        return Decimal("0")
    return pnl / Decimal(total_cost) * 100
