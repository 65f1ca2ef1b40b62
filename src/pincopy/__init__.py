"""
pincopy: replicate a pinned folder between content-addressed stores.

Lists a folder of a source node's mutable namespace, checks that every
entry is still pinned there, then either rebuilds the folder on a target
node (pinning as it goes) or streams it down to a local directory.
"""

__version__ = "0.1.0"

SOURCE_ENV_PREFIX = "SRC"
TARGET_ENV_PREFIX = "DST"

CONFIG_ENV_VAR = "PINCOPY_CONFIG"
