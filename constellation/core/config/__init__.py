from constellation.core.config.manager import ConfigManager
from constellation.core.config.models import PipelineConfig
from constellation.core.config.paths import PipelineFsPaths, ResolvedPaths

__all__ = ["ConfigManager", "PipelineConfig", "PipelineFsPaths", "ResolvedPaths"]
