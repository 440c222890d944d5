"""
Command-line front end for the Betly ticket and credits client.

Builds a session from configuration, restores the local draft, and runs
one command against it:
1. Manage the ticket draft (add, remove, stake, clear, save)
2. List saved tickets
3. Show the credit balance
4. Unlock credit-gated content
5. Keep balance and tickets refreshed in the background
"""

import argparse
import logging
import signal
import sys
import time

from betly.config import Config
from betly.errors import ApiError, user_action
from betly.models import ContentRef, ContentType, Selection
from betly.scheduler import RefreshScheduler
from betly.session import BetlySession
from betly.ticket_builder import MIN_ODDS
from betly.utils import describe_selection, describe_ticket, format_currency, format_odds


# Configure logging
def setup_logging() -> None:
    """Configure logging for the application."""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_level = getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]

    if Config.LOG_FILE:
        Config.ensure_directories()
        handlers.append(logging.FileHandler(Config.LOG_FILE))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers
    )


logger = logging.getLogger(__name__)

_ACTION_HINTS = {
    "top_up": "Buy a credit pack to continue.",
    "upgrade": "This content requires the Expert subscription.",
    "login": "Your session has expired. Run `login` again.",
    "retry": "Please try again.",
}


def decimal_odds(value: str) -> float:
    """argparse type for decimal odds (>= 1.0)."""
    try:
        odds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid odds: {value!r}")
    if odds < MIN_ODDS:
        raise argparse.ArgumentTypeError(f"odds must be at least {MIN_ODDS:g}, got {value}")
    return odds


def print_draft(session: BetlySession) -> None:
    builder = session.tickets
    if builder.is_empty:
        print("Ticket is empty.")
    for selection in builder.draft.selections:
        print(f"  {describe_selection(selection)}")
    print(f"Stake: {builder.stake:g}")
    print(f"Total odds: {format_odds(builder.total_odds())}")
    print(f"Potential win: {format_currency(builder.potential_win())}")


def _cmd_ticket(session: BetlySession, args: argparse.Namespace) -> int:
    builder = session.tickets

    if args.ticket_command == "add":
        builder.add_selection(Selection(match_id=args.match_id, bet=args.bet, odds=args.odds))
    elif args.ticket_command == "remove":
        builder.remove_selection(args.match_id)
    elif args.ticket_command == "stake":
        builder.update_stake(args.value)
    elif args.ticket_command == "clear":
        builder.clear()
    elif args.ticket_command == "save":
        ticket = builder.save()
        print(f"Saved: {describe_ticket(ticket)}")
        return 0

    print_draft(session)
    return 0


def _cmd_tickets(session: BetlySession, args: argparse.Namespace) -> int:
    if args.ticket_id:
        ticket = session.tickets.reload_ticket(args.ticket_id)
        print(describe_ticket(ticket))
        for selection in ticket.selections:
            print(f"  {describe_selection(selection)}")
        return 0

    tickets = session.tickets.load_tickets()
    if not tickets:
        print("No saved tickets.")
    for ticket in tickets:
        print(describe_ticket(ticket))
    return 0


def _cmd_balance(session: BetlySession, args: argparse.Namespace) -> int:
    balance = session.credits.load_balance()
    print(f"Credits: {balance.total} (subscription {balance.subscription}, purchased {balance.purchased})")
    if balance.weekly_reset:
        print(f"Weekly reset: {balance.weekly_reset.isoformat()}")
    return 0


def _cmd_unlock(session: BetlySession, args: argparse.Namespace) -> int:
    ref = ContentRef(ContentType(args.content_type), args.content_id)
    cost = args.cost if args.cost is not None else session.credits.cost_for(ref.content_type)

    if not args.yes:
        status = session.unlocks.check(ref)
        if status.is_unlocked:
            print("Already unlocked.")
            return 0
        print(f"Cost: {status.cost} credits (can afford: {'yes' if status.can_afford else 'no'})")
        print("Re-run with --yes to unlock.")
        return 0

    session.credits.load_balance()
    session.unlocks.unlock(ref, cost=cost)
    print(f"Unlocked {ref.content_type.value}/{ref.content_id}. Credits left: {session.credits.total_credits()}")
    return 0


def _cmd_login(session: BetlySession, args: argparse.Namespace) -> int:
    session.client.set_auth_token(args.token)
    print("Token stored.")
    return 0


def _cmd_logout(session: BetlySession, args: argparse.Namespace) -> int:
    session.client.clear_auth_token()
    print("Logged out.")
    return 0


def _cmd_watch(session: BetlySession, args: argparse.Namespace) -> int:
    """Refresh balance and tickets at intervals until interrupted."""
    scheduler = RefreshScheduler(session.refresh)

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down gracefully...")
        scheduler.stop(wait=True)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if not scheduler.start(args.interval):
        logger.error("Failed to start scheduler")
        return 1

    scheduler.run_once()
    logger.info("Refreshing in the background. Press Ctrl+C to stop.")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        scheduler.stop(wait=True)
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Betly ticket and credits client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m betly.main login <token>
  python -m betly.main ticket add 1 "Home win" 1.80
  python -m betly.main ticket stake 25
  python -m betly.main ticket save
  python -m betly.main unlock match_prediction 1 --yes
        """
    )
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Store an auth token")
    login.add_argument("token")
    login.set_defaults(handler=_cmd_login)

    commands.add_parser("logout", help="Forget the stored auth token").set_defaults(handler=_cmd_logout)
    commands.add_parser("balance", help="Show the credit balance").set_defaults(handler=_cmd_balance)
    tickets = commands.add_parser("tickets", help="List saved tickets, or show one")
    tickets.add_argument("ticket_id", nargs="?", default=None)
    tickets.set_defaults(handler=_cmd_tickets)

    ticket = commands.add_parser("ticket", help="Work on the ticket draft")
    ticket.set_defaults(handler=_cmd_ticket)
    ticket_commands = ticket.add_subparsers(dest="ticket_command", required=True)
    ticket_commands.add_parser("show", help="Show the draft")
    add = ticket_commands.add_parser("add", help="Add or replace a selection")
    add.add_argument("match_id", type=int)
    add.add_argument("bet")
    add.add_argument("odds", type=decimal_odds)
    remove = ticket_commands.add_parser("remove", help="Remove a selection")
    remove.add_argument("match_id", type=int)
    stake = ticket_commands.add_parser("stake", help="Set the stake")
    stake.add_argument("value", type=float)
    ticket_commands.add_parser("clear", help="Discard the draft")
    ticket_commands.add_parser("save", help="Submit the draft")

    unlock = commands.add_parser("unlock", help="Unlock credit-gated content")
    unlock.add_argument("content_type", choices=[c.value for c in ContentType])
    unlock.add_argument("content_id")
    unlock.add_argument("--cost", type=int, default=None, help="Known cost (defaults to the cost table)")
    unlock.add_argument("--yes", action="store_true", help="Confirm the spend")
    unlock.set_defaults(handler=_cmd_unlock)

    watch = commands.add_parser("watch", help="Refresh balance and tickets in the background")
    watch.add_argument("--interval", type=int, default=None, help="Minutes between refreshes")
    watch.set_defaults(handler=_cmd_watch)

    return parser


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args(argv)

    setup_logging()

    is_valid, errors = Config.validate()
    if not is_valid:
        logger.error("Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        return 1

    Config.ensure_directories()
    session = BetlySession.create()
    session.startup()

    try:
        return args.handler(session, args)

    except ApiError as e:
        print(f"Error: {e.message}")
        if e.required is not None and e.available is not None:
            print(f"Required: {e.required} credits, available: {e.available}")
        hint = _ACTION_HINTS.get(user_action(e))
        if hint:
            print(hint)
        return 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
