"""Event-loop building blocks: dates, asynchronous file logging, task queues, timers and I/O pollers."""

__version__ = "1.5.25"
__all__ = ["async_file_logger", "date", "poller", "task_queue", "timer", "timer_queue"]