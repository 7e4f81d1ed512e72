import logging

import uvicorn

import config
from utils.logging_config import setup_logging, silence_sql_loggers

# Initialize centralized logging configuration
setup_logging()

from app import create_app

app = create_app()

# Keep SQL statements and pool chatter out of the catalog log
silence_sql_loggers()
logging.info("SQL loggers silenced (aiosqlite, sqlalchemy.*)")


def main() -> None:
    uvicorn.run(app, host=config.WEBAPP_HOST, port=config.WEBAPP_PORT, log_config=None)


if __name__ == '__main__':
    main()
