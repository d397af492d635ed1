"""
Configuration for the neatgenome package.

Modules:
    config: Config class, parsing INI files into genome-level parameters
"""

from neatgenome.run.config import Config

__all__ = ['Config']
