"""autotask: an autonomous objective -> task queue -> execution loop."""

__version__ = "0.1.0"
