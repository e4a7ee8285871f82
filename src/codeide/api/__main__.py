"""Start the CodeIDE backend with Uvicorn."""

import uvicorn

from .main import app, config


def main() -> None:
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
