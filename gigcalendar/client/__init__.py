# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Python client: session cache plus the live-update listener."""

from gigcalendar.client.live import LiveUpdates
from gigcalendar.client.store import ClientStore

__all__ = ["ClientStore", "LiveUpdates"]
