import uvicorn

from chatdesk.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("chatdesk.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
