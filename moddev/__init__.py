"""moddev - development environment builder for obfuscated game clients.

Wires the remapping configuration graph and synchronizes the
content-addressed asset cache used by the runtime launcher.
"""

__version__ = "0.1.0"
