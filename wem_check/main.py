"""WEM Infrastructure Service debug mode check - entry point.

Usage:
    wem-check
"""

import logging
import os
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

# Fix module search path when running script directly
project_root = Path(__file__).resolve().parents[1]
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from wem_check.checker.main import run_check
from wem_check.checker.report import print_config_error
from wem_check.shared import config as config_module
from wem_check.shared.config import get_config

logger = logging.getLogger(__name__)

EXIT_FATAL = 1


def setup_logging(level: str) -> None:
    """Send diagnostics to stderr so they stay out of the report on stdout."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def cli() -> None:
    """CLI entry point for the package."""
    # Force UTF-8 for stdout/stderr on Windows
    if os.name == "nt":
        sys.stdout.reconfigure(encoding='utf-8')
        sys.stderr.reconfigure(encoding='utf-8')

    try:
        config = get_config()
        setup_logging(config.logging.level)
        code = run_check(config)
    except (ValidationError, yaml.YAMLError) as e:
        logger.error(f"Invalid configuration in {config_module.DEFAULT_CONFIG_PATH}: {e}")
        print_config_error(config_module.DEFAULT_CONFIG_PATH, e)
        code = EXIT_FATAL
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        code = EXIT_FATAL
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        code = EXIT_FATAL
    sys.exit(code)


if __name__ == "__main__":
    cli()
