#!/usr/bin/env python3
import argparse
import sys
from pupistry.models import load_config_from_env
from pupistry.services.build_service import BuildService
from pupistry.utils.logging import setup_logger


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Build a Puppet code artifact")
    parser.add_argument('--dry-run', action='store_true', help='Build the artifact without saving it to the cache')
    args = parser.parse_args(argv)
    logger = setup_logger("ArtifactBuilder")
    try:
        config = load_config_from_env()
        logger.info(f"Starting artifact build with cache {config.general.cache_dir}")
        manifest = BuildService(config, dry_run=args.dry_run).run()
        logger.info(f"Artifact build {manifest.version} completed successfully")
        return 0
    except Exception as e:
        logger.error(f"Artifact build failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
