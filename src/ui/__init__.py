"""
Maze BSP Toolkit - UI Module

Qt integration for running maze generation off the GUI thread.
"""

from .generation_thread import GenerationThread

__all__ = [
    'GenerationThread'
]
