# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING, NoReturn

from dotenv import load_dotenv

from contact_identity.app import identify_contact, store_health
from contact_identity.config import ConfigurationError, configure_logging
from contact_identity.domain.errors import IdentityError, InvalidIdentifyRequestError
from contact_identity.ui.schema import IdentifyResponseModel, parse_identify_payload

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

EXIT_USAGE = 2
EXIT_TEMPFAIL = 75


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise ValueError(message)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = _ArgumentParser(description="Reconcile contact identities")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    identify = subparsers.add_parser("identify", help="Resolve the identity holding a fact")
    identify.add_argument(
        "--email",
        type=str,
        help="Email address to reconcile",
    )
    identify.add_argument(
        "--phone",
        type=str,
        help="Phone number to reconcile",
    )

    subparsers.add_parser("health", help="Check that the contact store is reachable")

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    configure_logging(level=logging.DEBUG if "--verbose" in args_list else logging.INFO)
    try:
        parsed_args = _parse_args(args_list)
        payload = (
            parse_identify_payload({"email": parsed_args.email, "phoneNumber": parsed_args.phone})
            if parsed_args.command == "identify"
            else None
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(EXIT_USAGE)

    try:
        if payload is not None:
            identity = identify_contact(payload)
            print(IdentifyResponseModel.from_identity(identity).to_json())
        else:
            store_health()
            print("ok")
    except InvalidIdentifyRequestError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(EXIT_USAGE)
    except IdentityError as exc:
        if exc.retryable:
            log.warning("Contact store unavailable, retry later: %s", exc)
            sys.exit(EXIT_TEMPFAIL)
        log.exception("Fatal identity error")
        sys.exit(1)
    except ConfigurationError:
        log.exception("Invalid configuration")
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during identify")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
