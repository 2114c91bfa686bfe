import logging

import uvicorn

from .config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=logging.INFO)
    logging.getLogger(__name__).info(
        "server.start",
        extra={"host": settings.host, "port": settings.port, "database": settings.mongodb_database},
    )
    uvicorn.run("books_api.app:app", host=settings.host, port=settings.port, access_log=True)


if __name__ == "__main__":
    main()
