import logging
import os

import uvicorn

from gamechooser.config import settings


def main() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    port = int(os.environ.get("PORT", settings.port))
    uvicorn.run("gamechooser.main:app", host=settings.host, port=port)


if __name__ == "__main__":
    main()
