"""DoorSight - door and obstacle guidance from single camera captures."""

__version__ = "0.1.0"
