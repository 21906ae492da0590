"""Run the API: ``python -m streamlist``."""
import uvicorn

from streamlist.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "streamlist.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
