"""EventBus for decoupled publish/subscribe communication."""

from enum import Enum, auto
from typing import Any, Callable
from collections import defaultdict


class EventType(Enum):
    # Design changes
    CONFIG_CHANGED = auto()         # data: config (MaskConfig)
    ANIMATIONS_CHANGED = auto()     # data: animations (dict)
    PRESET_APPLIED = auto()         # data: name (str)
    TARGET_MESH_CHANGED = auto()    # data: target (TargetMesh | None)

    # Placement
    INSTANCES_REGENERATED = auto()  # data: instances (InstanceSet)

    # Skinning
    BINDING_ESTABLISHED = auto()    # data: count (int)
    BINDING_RELEASED = auto()       # data: reason (str)

    # Tracking session
    TRACKING_STARTED = auto()
    TRACKING_STOPPED = auto()
    TRACKING_FAILED = auto()        # data: error (Exception)

    # Frame events
    FRAME_UPDATE = auto()           # data: output (FrameOutput)


class EventBus:
    """Simple publish/subscribe event system."""

    def __init__(self):
        self._handlers: dict[EventType, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: Callable) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: Callable) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event_type: EventType, **data: Any) -> None:
        for handler in list(self._handlers[event_type]):
            handler(**data)

    def clear(self) -> None:
        self._handlers.clear()
