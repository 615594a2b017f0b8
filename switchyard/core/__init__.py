"""Core package - host collaborators the extension runtime wires into."""

from .emitter import Emitter, get_emitter
from .flows import FlowManager, get_flow_manager
from .job_queue import JobQueue

__all__ = ["Emitter", "get_emitter", "FlowManager", "get_flow_manager", "JobQueue"]
