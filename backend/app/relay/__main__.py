import uvicorn

from backend.app.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "backend.app.relay.main:app",
        host=settings.relay_host,
        port=settings.relay_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
