[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tranlib"
version = "1.5.25"
description = "Event-loop building blocks: dates, asynchronous file logging, task queues, timers and I/O pollers"
requires-python = ">=3.10"
dependencies = []
keywords = ["event-loop", "timer", "poller", "epoll", "kqueue", "logging", "task-queue", "date"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tranlib"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
