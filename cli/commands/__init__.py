"""
batchmint CLI Commands Package

Command modules for the batchmint CLI.
"""

__all__ = ['mint', 'keys', 'config']
