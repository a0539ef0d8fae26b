"""Reachability tracking shared by all fetches."""

from storepulse.network.monitor import NetworkState, NetworkStatusMonitor, StatusCallback
from storepulse.network.sources import (
    ConnectivityEvent,
    ConnectivityListener,
    ConnectivitySource,
    ManualConnectivitySource,
    ProbeConnectivitySource,
)

__all__ = [
    "ConnectivityEvent",
    "ConnectivityListener",
    "ConnectivitySource",
    "ManualConnectivitySource",
    "NetworkState",
    "NetworkStatusMonitor",
    "ProbeConnectivitySource",
    "StatusCallback",
]
