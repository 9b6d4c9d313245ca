import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

import psutil
from pydantic import BaseModel


class ServiceStatus(BaseModel):
    running: bool
    pid: Optional[int] = None
    started_at: Optional[datetime] = None

    def describe(self) -> str:
        if not self.running:
            return "not running"
        return f"running (pid {self.pid})"


class ServiceProbe:
    """
    Looks up the managed service process for the console's status line.
    """

    def __init__(self, service_name: str):
        """
        Args:
            service_name (str): Executable or script name the service runs as.
        """
        self.service_name = service_name
        self.logger = logging.getLogger(__name__)

    def _matches(self, name: str, cmdline) -> bool:
        if name == self.service_name:
            return True
        return any(Path(arg).name == self.service_name for arg in cmdline or [])

    def find_process(self) -> Optional[psutil.Process]:
        """
        Finds the first process whose name or command line names the service.

        Returns:
            psutil.Process: The process object, or None if the service is not running.
        """
        own_pid = os.getpid()
        for proc in psutil.process_iter(['pid', 'name', 'cmdline']):
            try:
                if proc.info['pid'] == own_pid:
                    continue
                if self._matches(proc.info['name'] or "", proc.info['cmdline']):
                    return proc
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                continue
        return None

    def status(self) -> ServiceStatus:
        try:
            proc = self.find_process()
            if proc is None:
                return ServiceStatus(running=False)
            return ServiceStatus(
                running=True,
                pid=proc.pid,
                started_at=datetime.fromtimestamp(proc.create_time()),
            )
        except psutil.Error as e:
            self.logger.warning(f"Could not query service process: {e}")
            return ServiceStatus(running=False)
