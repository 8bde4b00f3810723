import logging
from pathlib import Path

from dotenv import load_dotenv

from .bot.bot import build_application
from .core.config import get_settings
from .core.config_validator import ensure_valid_config, log_config_summary
from .services.region_catalog import load_region_catalog
from .utils.logging import setup_logging
from .version import __version__

logger = logging.getLogger(__name__)

# Load order (later files override earlier):
# 1. project .env (project defaults)
# 2. project .env.local (local overrides)
project_root = Path(__file__).parent.parent


def _load_env_files() -> None:
    env_file = project_root / ".env"
    env_local = project_root / ".env.local"

    if env_file.exists():
        load_dotenv(env_file, override=True)
    if env_local.exists():
        load_dotenv(env_local, override=True)


def main() -> None:
    """Validate configuration, build the bot and poll until interrupted."""
    _load_env_files()
    get_settings.cache_clear()
    settings = get_settings()

    setup_logging(log_level=settings.log_level, log_to_file=settings.log_to_file)
    logger.info("🚀 Life calendar bot %s starting up...", __version__)

    ensure_valid_config(settings)
    log_config_summary(settings)

    catalog = load_region_catalog(
        settings.region_catalog_path,
        default_expectancy=settings.default_life_expectancy,
    )
    logger.info("Region catalog: %s", ", ".join(catalog.list_regions()))

    application = build_application(settings, catalog)

    # run_polling installs SIGINT/SIGTERM handlers and runs post_shutdown on exit
    application.run_polling()
    logger.info("👋 Life calendar bot stopped")


if __name__ == "__main__":
    main()
