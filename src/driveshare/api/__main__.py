"""Run the API with uvicorn: ``python -m driveshare.api``."""

import uvicorn

from driveshare.api.app import create_app
from driveshare.config import Settings


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
