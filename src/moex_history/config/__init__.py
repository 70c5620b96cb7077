"""Configuration subpackage."""

from moex_history.config.settings import AppSettings, DownloadSettings, InstrumentGroup, IssSettings, load_settings

__all__ = ["AppSettings", "DownloadSettings", "InstrumentGroup", "IssSettings", "load_settings"]
