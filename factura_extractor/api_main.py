from __future__ import annotations

import uvicorn

from factura_extractor.api import create_app
from factura_extractor.config import Settings, load_dotenv
from factura_extractor.logger import configure_logging

load_dotenv()
settings = Settings.from_env()
app = create_app(settings)


def main() -> None:
    configure_logging(settings.log_level)
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
