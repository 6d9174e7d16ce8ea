# -*- coding: utf-8 -*-
# Time       : 2026/10/19 10:06
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description: 安装流程中的致命错误，统一由入口脚本捕获后退出
from __future__ import annotations


class ScaffoldError(Exception):
    """Base class of every fatal installer error"""


class ValidationError(ScaffoldError):
    """A required field is empty or out of range"""


class EnvironmentNotSupported(ScaffoldError):
    """Missing privilege, unknown OS or unsupported CPU architecture"""


class NetworkError(ScaffoldError):
    """Version lookup or download failure"""


class ConfigWriteError(ScaffoldError):
    pass


class ServiceError(ScaffoldError):
    """systemd or firewall command failure"""
