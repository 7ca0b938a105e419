from __future__ import annotations

import uvicorn

from chat_trigger.api.app import create_app
from chat_trigger.config import load_config
from chat_trigger.logging_config import configure_logging


def main() -> None:
    config = load_config()
    configure_logging(config.log_level)
    app = create_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
