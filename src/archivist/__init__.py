"""
Archivist: Incremental Article Archiver

A utility for walking a single target site, extracting each article's
structured fields and embedded images, and saving every article exactly
once to a per-article directory so that interrupted runs can be resumed.
"""

__version__ = "1.0"
__author__ = "Archivist Project"
__description__ = "Incremental Article Archiver"
