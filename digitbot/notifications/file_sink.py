"""JSON-lines file messaging sink."""

import fcntl
import json
from datetime import datetime
from pathlib import Path

from ..config.notifications import FileSinkConfig
from .base import BaseNotificationSink, DeliveryResult, DeliveryStatus, Notification


class FileNotificationSink(BaseNotificationSink):
    """Appends notifications to a JSON-lines file."""

    def __init__(self, name: str, config: FileSinkConfig):
        super().__init__(name, config)
        self.config: FileSinkConfig = config
        self.output_path = Path(config.output_path)

        if config.create_dirs:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def send(self, notification: Notification) -> DeliveryResult:
        if self.config.max_file_size_mb and self._check_file_size_limit():
            if self.config.rotation_enabled:
                self._rotate_file()
            else:
                error_msg = f"File size limit exceeded: {self.config.max_file_size_mb}MB"
                self.logger.error(error_msg, sink=self.name)
                return DeliveryResult(status=DeliveryStatus.FAILED, message=error_msg)

        mode = 'a' if self.config.append_mode else 'w'
        with open(self.output_path, mode) as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            json.dump(notification.to_dict(), f, default=str)
            f.write('\n')

        self.logger.debug(
            "Notification written to file",
            sink=self.name,
            action=notification.action,
            output_path=str(self.output_path)
        )
        return DeliveryResult(
            status=DeliveryStatus.SUCCESS,
            message=f"Written to {self.output_path}"
        )

    def _check_file_size_limit(self) -> bool:
        """Check if file size exceeds the configured limit."""
        if not self.output_path.exists():
            return False

        file_size_mb = self.output_path.stat().st_size / (1024 * 1024)
        return file_size_mb > self.config.max_file_size_mb  # type: ignore[operator]

    def _rotate_file(self) -> None:
        """Rotate the output file when size limit is reached."""
        if not self.output_path.exists():
            return

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        rotated_name = f"{self.output_path.stem}_{timestamp}{self.output_path.suffix}"
        rotated_path = self.output_path.parent / rotated_name
        self.output_path.rename(rotated_path)

        self.logger.info(
            "File rotated due to size limit",
            sink=self.name,
            original_path=str(self.output_path),
            rotated_path=str(rotated_path)
        )

    def health_check(self) -> bool:
        """Check if file system is writable."""
        try:
            test_file = self.output_path.parent / ".health_check_test"
            test_file.write_text("test")
            test_file.unlink()
            return True
        except OSError as e:
            self.logger.warning("Health check failed", sink=self.name, error=str(e))
            return False
