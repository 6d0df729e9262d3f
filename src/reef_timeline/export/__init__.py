"""
Export modules for the visualization client.
"""

from .dataset_emitter import DatasetEmitter

__all__ = ["DatasetEmitter"]
