"""clever-deploy public API surface.

This package intentionally exposes only the stable entry points needed by
consumers; everything else should be considered internal and may change.
"""

from .version import __version__
from .config import Configuration, resolve_arguments
from .orchestration import DeploymentOutcome, DeploymentPipeline, run

__all__ = [
    "Configuration",
    "DeploymentOutcome",
    "DeploymentPipeline",
    "resolve_arguments",
    "run",
    "__version__",
]
