"""Run the HTTP service: python -m ordergate"""

import uvicorn

from ordergate.app import create_app
from ordergate.config import get_settings
from ordergate.observability import setup_logging, setup_tracing


def main() -> None:
    settings = get_settings()
    setup_logging(settings)
    setup_tracing(settings)
    uvicorn.run(
        create_app(settings),
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
