"""
OCM Logout Command.

This module provides the command that removes the connection related
settings from the stored configuration.
"""

from ocmcli.helpers import OCMError, exit_with_error
from ocmcli.store import get_config_store


def logout():
    """Log out, removing connection related variables from the config file."""
    try:
        store = get_config_store()
        cfg = store.load()
        if cfg is None:
            return
        cfg.disarm()
        store.save(cfg)
    except OCMError as e:
        exit_with_error(f"can't update configuration: {e}")
