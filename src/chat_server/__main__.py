import logging

import uvicorn

from chat_server.app import create_app
from chat_server.config import Settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


def main() -> None:
    settings = Settings()
    app = create_app(settings.static_assets)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
