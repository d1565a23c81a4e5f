from __future__ import annotations

import json
import sys
from dataclasses import asdict

from constellation.core.config import ConfigManager
from constellation.core.config.paths import PipelineFsPaths
from constellation.core.errors import ConfigError


def main() -> int:
    cm = ConfigManager(fs=PipelineFsPaths("."), logger=None)
    try:
        cfg = cm.load_all()
    except ConfigError as e:
        print(json.dumps(e.to_dict(), indent=2, sort_keys=True), file=sys.stderr)
        return e.exit_code
    print(json.dumps({"config": cfg.model_dump(), "paths": asdict(cm.paths())}, indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
