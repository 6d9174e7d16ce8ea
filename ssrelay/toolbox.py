# -*- coding: utf-8 -*-
# Time       : 2026/10/19 10:02
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description:
from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from loguru import logger

__all__ = ["Project", "init_log"]


@dataclass
class Project:
    workstation: Path = Path("/etc/sing-box")
    singbox_executable: Path = Path("/usr/local/bin/sing-box")
    singbox_service: Path = Path("/etc/systemd/system/sing-box.service")

    logs: Path = Path("/var/log/singss")

    @property
    def server_config(self) -> Path:
        return self.workstation.joinpath("config.json")

    @property
    def client_uri(self) -> Path:
        return self.workstation.joinpath("client_uri.txt")

    @property
    def error_log(self) -> Path:
        return self.logs.joinpath("error.log")

    @property
    def runtime_log(self) -> Path:
        return self.logs.joinpath("runtime.log")

    def __post_init__(self):
        self.workstation = Path(self.workstation)
        self.logs = Path(self.logs)

    def init_workstation(self):
        os.makedirs(self.workstation, exist_ok=True)


def init_log(*, stdout_level: Literal["INFO", "DEBUG"] = "INFO", project: Project | None = None):
    """
    stdout 始终输出；传入 project 时额外落盘到 project.logs
    """
    event_logger_format = "<g>{time:YYYY-MM-DD HH:mm:ss}</g> | <lvl>{level}</lvl> - {message}"
    logger.remove()
    logger.add(
        sink=sys.stdout, colorize=True, level=stdout_level, format=event_logger_format, diagnose=False
    )
    if project is None:
        return logger

    logger.add(
        sink=project.error_log,
        level="ERROR",
        rotation="1 week",
        encoding="utf8",
        diagnose=False,
        format=event_logger_format,
    )
    logger.add(
        sink=project.runtime_log,
        level="INFO",
        rotation="20 MB",
        retention="20 days",
        encoding="utf8",
        diagnose=False,
        format=event_logger_format,
    )
    return logger
