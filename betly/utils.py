"""
Display helpers for the Betly command line.

All functions are pure helpers with no domain logic.
"""

from betly.models import Selection, Ticket


def format_odds(value: float) -> str:
    """
    Format decimal odds for display.

    Args:
        value: Decimal odds

    Returns:
        Odds rounded to two decimals (e.g., "3.78")
    """
    return f"{value:.2f}"


def format_currency(value: float, decimals: int = 2, symbol: str = "€") -> str:
    """
    Format an amount as a currency string.

    Args:
        value: Amount to format
        decimals: Number of decimal places (default: 2)
        symbol: Currency symbol appended to the amount

    Returns:
        Formatted currency string (e.g., "37.80 €")
    """
    return f"{value:,.{decimals}f} {symbol}"


def describe_selection(selection: Selection) -> str:
    """One-line description of a selection, using the match snapshot when present."""
    match = selection.match or {}
    home = (match.get("homeTeam") or {}).get("name")
    away = (match.get("awayTeam") or {}).get("name")
    label = f"{home} vs {away}" if home and away else f"Match {selection.match_id}"
    return f"{label}: {selection.bet} @ {format_odds(selection.odds)}"


def describe_ticket(ticket: Ticket) -> str:
    amount = format_currency(ticket.potential_win)
    created = ticket.created_at.strftime("%Y-%m-%d %H:%M") if ticket.created_at else "-"
    return (
        f"{ticket.id} [{ticket.status.value}] {len(ticket.selections)} selections, "
        f"odds {format_odds(ticket.total_odds)}, stake {ticket.stake:g}, "
        f"potential win {amount}, created {created}"
    )
