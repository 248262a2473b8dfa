"""Bridge exports."""
from .base import BridgeError, BridgeManager, BrowserBridge, bridge_manager
from .process import ProcessBridge
from .replay import ReplayBridge, load_recording

__all__ = [
    "BridgeError",
    "BridgeManager",
    "BrowserBridge",
    "bridge_manager",
    "ProcessBridge",
    "ReplayBridge",
    "load_recording",
]

bridge_manager.register(ProcessBridge)
bridge_manager.register(ReplayBridge)
