"""CLI package for the Magpie catalog"""
from .main import cli

__all__ = ['cli']
