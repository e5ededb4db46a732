"""
Command line interface

This module provides the command-line entry point for EEG Biomarkers.
"""

from .main import main

__all__ = ['main']
