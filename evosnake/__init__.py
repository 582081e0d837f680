"""
evosnake - neuroevolution for Snake.

Evolves 32-20-12-4 feed-forward networks with a generational genetic
algorithm; fitness comes from headless games played in parallel.
"""

from .config import TrainingConfig, build_config
from .errors import EvosnakeError, InvalidConfiguration, InvalidGenomeShape

__version__ = "0.1.0"

__all__ = [
    'TrainingConfig', 'build_config',
    'EvosnakeError', 'InvalidConfiguration', 'InvalidGenomeShape',
]
