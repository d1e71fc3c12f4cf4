"""
                Carta Digital

Restaurant menu management and table ordering backend with
voice commands, optimistic local state and optional realtime
mirroring to a remote store.
"""

__version__ = "1.0.0"
