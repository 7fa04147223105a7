"""Application entry point for GlobeTrotter backend server."""

from globetrotter.app import App
from globetrotter.config import Config
from globetrotter.logging import setup_logging
from globetrotter.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
