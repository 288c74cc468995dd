"""Built-in share services."""

from capshare.plugins.builtin.save_file import SAVE_FILE

__all__ = ["SAVE_FILE"]
