from __future__ import annotations

import argparse
import os
import sys

from constellation.core.config import ConfigManager, PipelineFsPaths
from constellation.core.config.models import LoggingConfig
from constellation.core.errors import ConfigError
from constellation.core.logger import setup_logging
from constellation.core.pipeline.runner import PipelineRunner


def _logging_config(fs: PipelineFsPaths) -> LoggingConfig:
    # an invalid config is reported by the run itself; log with defaults until then
    try:
        return ConfigManager(fs=fs).load_all().logging
    except ConfigError:
        return LoggingConfig()


def main() -> int:
    ap = argparse.ArgumentParser(description="Constellation build pipeline (privacy-checked graph + layout)")
    ap.add_argument("--root", default=".", help="Project root; relative config paths resolve against it.")
    ap.add_argument("--records-dir", default=None, help="Override the records directory (same as CONSTELLATION_RECORDS_DIR).")
    args = ap.parse_args()

    if args.records_dir:
        os.environ["CONSTELLATION_RECORDS_DIR"] = args.records_dir

    fs = PipelineFsPaths(os.path.abspath(args.root))
    logger = setup_logging(fs.logs_dir, _logging_config(fs))
    runner = PipelineRunner(fs=fs, config_manager=ConfigManager(fs=fs, logger=logger), logger=logger)
    status = runner.run()
    if not status.ok:
        logger.error(f"Pipeline FAILED ({status.error_code}): {status.error}")
    return status.exit_code


if __name__ == "__main__":
    sys.exit(main())
