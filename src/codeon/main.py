"""Entry point for codeon."""

import sys

from .logger import configure_logging
from .settings import Settings
from .ui.app import CodeOnApp


def main() -> int:
    """Run the codeon application."""
    settings = Settings.from_env()
    configure_logging(settings.log_dir, settings.log_level, console=False)
    app = CodeOnApp(settings)
    app.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
