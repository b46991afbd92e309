"""
elfspan Shared Module
=====================

Configuration, structured logging, and console utilities shared by the
elfspan decoder and its command-line shell.
"""

from shared.config import ElfspanConfig

__all__ = ["ElfspanConfig"]
