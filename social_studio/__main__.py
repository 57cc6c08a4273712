"""
Run the Social Studio API with uvicorn.

    python -m social_studio
"""

import os

import uvicorn

from social_studio.infrastructure.config import get_config
from social_studio.infrastructure.monitoring import setup_structured_logging
from social_studio.interfaces.api.app import create_app


def main() -> None:
    config = get_config()
    setup_structured_logging(level=config.log_level, format_type=config.log_format)

    app = create_app()
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
