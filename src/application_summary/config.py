"""
Environment configuration for the application summary pipeline.

Values are read from the process environment, with a local ``.env`` file
loaded first when present.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# SQS accepts at most 10 messages per receive call
MAX_RECEIVE_BATCH = 10


def _env_number(name: str, default, cast=int):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return cast(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}")


@dataclass
class PipelineSettings:
    """Settings for the queue-driven summary pipeline."""
    source_queue: Optional[str] = None
    notify_queue: Optional[str] = None
    document_bucket: Optional[str] = None
    aws_region: str = "eu-west-2"
    aws_endpoint_url: Optional[str] = None
    poll_interval: float = 30
    max_messages: int = MAX_RECEIVE_BATCH
    message_timeout: float = 300
    work_dir: Path = Path("/tmp/application-summary")
    summary_style: str = "default"
    log_level: str = "INFO"
    log_file: str = "logs/application-summary.log"

    def __post_init__(self):
        self.work_dir = Path(self.work_dir)
        self.max_messages = max(1, min(self.max_messages, MAX_RECEIVE_BATCH))

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """
        Build settings from environment variables.

        Returns:
            PipelineSettings populated from the environment with defaults
        """
        return cls(
            source_queue=os.getenv("SOURCE_QUEUE"),
            notify_queue=os.getenv("NOTIFY_QUEUE"),
            document_bucket=os.getenv("DOCUMENT_BUCKET"),
            aws_region=os.getenv("AWS_REGION", "eu-west-2"),
            aws_endpoint_url=os.getenv("AWS_ENDPOINT_URL") or None,
            poll_interval=_env_number("POLL_INTERVAL_SECONDS", 30, float),
            max_messages=_env_number("MAX_MESSAGES", MAX_RECEIVE_BATCH),
            message_timeout=_env_number("MESSAGE_TIMEOUT_SECONDS", 300, float),
            work_dir=Path(os.getenv("WORK_DIR", "/tmp/application-summary")),
            summary_style=os.getenv("SUMMARY_STYLE", "default"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", "logs/application-summary.log"),
        )

    def validate(self) -> List[str]:
        """
        Validate settings required by the queue worker.

        Returns:
            List of validation errors
        """
        errors = []
        required = {
            "SOURCE_QUEUE": self.source_queue,
            "NOTIFY_QUEUE": self.notify_queue,
            "DOCUMENT_BUCKET": self.document_bucket,
        }
        for key, value in required.items():
            if not value:
                errors.append(f"Missing required setting: {key}")

        if self.poll_interval <= 0:
            errors.append("POLL_INTERVAL_SECONDS must be positive")
        if self.message_timeout <= 0:
            errors.append("MESSAGE_TIMEOUT_SECONDS must be positive")

        return errors
