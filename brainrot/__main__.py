"""Run the API with uvicorn: ``python -m brainrot``."""

import uvicorn

from brainrot.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "brainrot.api.app:app",
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
