"""Entry point for the Collateral Underwriter: prints status and a sample assessment."""

import json
import logging

import structlog

from .config import settings
from .models import LoanRequest
from .underwriter import Underwriter


def configure_logging(level: str) -> None:
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(numeric_level))


def main() -> None:
    configure_logging(settings.log_level)
    underwriter = Underwriter.from_settings(settings)

    sample = LoanRequest(
        contract_address="0xBC4CA0EdA7647A8aB7C2061c2E118A18a936f13D",
        token_id="1024",
        requested_amount=8.0,
        duration=14,
        floor_price=30.0,
    )
    out = underwriter.assess_loan(sample)
    print(json.dumps({
        "status": underwriter.get_status().model_dump(by_alias=True, mode="json"),
        "assessment": out.model_dump(by_alias=True, mode="json"),
    }, indent=2))


if __name__ == "__main__":
    main()
