"""Initial data: create tables, the first admin user and, optionally, one API key."""

import argparse
import logging

from sqlmodel import Session

from tenantgate.core.db import engine, init_db
from tenantgate.core.security import generate_api_secret, get_password_hash
from tenantgate.models import ApiKey

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_api_key(session: Session, name: str) -> tuple[ApiKey, str]:
    """Create an ACTIVE api key; returns (row, plain secret). The secret is shown once."""
    secret = generate_api_secret()
    api_key = ApiKey(name=name, key_hash=get_password_hash(secret))
    session.add(api_key)
    session.flush()
    return api_key, secret


def init(api_key_name: str | None = None) -> None:
    with Session(engine) as session:
        init_db(session)
        if api_key_name:
            api_key, secret = create_api_key(session, api_key_name)
            logger.info("Created API key %s (secret: %s)", api_key.id, secret)
        session.commit()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--api-key", metavar="NAME", help="also create an API key for a partner client"
    )
    args = parser.parse_args()
    logger.info("Creating initial data")
    init(args.api_key)
    logger.info("Initial data created")


if __name__ == "__main__":
    main()
