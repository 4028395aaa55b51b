import os
import logging
from typing import Mapping

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

def parse_bool(value: str, default: bool) -> bool:
    """true/false, 1/0, yes/no, on/off. Anything else keeps the default."""
    if not value:
        return default
    value = value.strip().lower()
    if value in ("true", "1", "yes", "on"):
        return True
    if value in ("false", "0", "no", "off"):
        return False
    return default

class Config:
    def __init__(self, environ: Mapping[str, str] = None):
        env = os.environ if environ is None else environ

        self.PROMETHEUS_ENABLED = parse_bool(env.get("PROMETHEUS_ENABLED", ""), True)
        self.PROMETHEUS_SCENARIO = env.get("STAGE_PROMETHEUS_SCENARIO") or "healthy"
        self.HOST = env.get("HOST") or "0.0.0.0"
        self.LOG_LEVEL = (env.get("LOG_LEVEL") or "INFO").upper()
        if self.LOG_LEVEL not in LOG_LEVELS:
            self.LOG_LEVEL = "INFO"

        # Validation
        port = env.get("PORT") or "8080"
        try:
            self.PORT = int(port)
        except ValueError:
            raise ValueError(f"PORT must be a number between 1 and 65535, got: {port}")
        if not 1 <= self.PORT <= 65535:
            raise ValueError(f"PORT must be a number between 1 and 65535, got: {port}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "Config":
        return cls(environ)

config = Config()

# Configure logging
logging.basicConfig(
    level=LOG_LEVELS[config.LOG_LEVEL],
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("mock-prometheus")
