"""Run the relay with uvicorn: ``python -m syncparty``."""
import uvicorn

from syncparty.config import get_config


def main() -> None:
    config = get_config()
    uvicorn.run(
        "syncparty.main:app",
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level,
    )


if __name__ == "__main__":
    main()
