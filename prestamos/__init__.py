"""Library lending service: catalogue, task queue, FIFO receiver and requester."""

__version__ = "0.1.0"
__all__ = ["models", "taskbuffer", "library", "receptor", "solicitante"]