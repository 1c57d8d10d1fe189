"""
MediaIndexer - directory-synchronization daemon for derived media artifacts.

Watches a source directory of media files and keeps a destination directory
of derived artifacts (filmstrips, waveforms, loudness reports, metadata
dumps) consistent with it.

One process serves exactly one instance type:

    mediaindexer filmstrip          # continuous polling
    mediaindexer --once jsoninfo    # single pass, then exit
"""

__version__ = "1.0.0"
