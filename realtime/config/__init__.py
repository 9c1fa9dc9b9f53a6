"""
Configuration module for the realtime package.

Key components:
- constants: Application-wide constants such as the logger name, API endpoint
  paths and the local audio parameters.
- logging_config: Console and rotating-file logging, plus FieldLogger which
  attaches a constant set of fields to every record.
- env: Typed environment variable getters with defaults and required-ness.

Usage examples:
```python
from realtime.config.logging_config import new_logger
logger = new_logger(package="realtime", example="openai")
logger.info("Application started")

from realtime.config.env import getenv, getenv_int
port = getenv(getenv_int, "PORT", default="8000")
```
"""
