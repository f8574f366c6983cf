import logging
import sys

from .app import create_app
from .config import Settings, load_env_file
from .context import ServerContext
from .logs import configure_logging
from .stdio import serve_stdio

log = logging.getLogger("gtm_mcp")


def main() -> int:
    env_file = load_env_file()
    settings = Settings.from_env()
    configure_logging(settings)
    if env_file:
        log.debug("Loaded environment variables from %s", env_file)

    ctx = ServerContext(settings)
    try:
        if settings.transport == "http":
            create_app(ctx).run(host=settings.host, port=settings.port)
        else:
            serve_stdio(ctx)
    except KeyboardInterrupt:
        pass
    except Exception:
        log.exception("Fatal error in main()")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
