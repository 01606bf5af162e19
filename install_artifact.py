#!/usr/bin/env python3
import argparse
import sys
from pupistry.models import load_config_from_env
from pupistry.services.install_service import InstallService
from pupistry.utils.logging import setup_logger


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Install the latest Puppet code artifact")
    parser.add_argument('--force', action='store_true', help='Reinstall even if the latest artifact is already installed')
    args = parser.parse_args(argv)
    logger = setup_logger("ArtifactInstaller")
    try:
        config = load_config_from_env()
        logger.info(f"Starting artifact install into {config.agent.puppetcode}")
        InstallService(config, force=args.force).run()
        logger.info("Artifact install completed successfully")
        return 0
    except Exception as e:
        logger.error(f"Artifact install failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
