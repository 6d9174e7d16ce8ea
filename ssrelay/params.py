# -*- coding: utf-8 -*-
# Time       : 2026/10/19 10:11
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description: 一次运行所需的全部节点参数
from __future__ import annotations

import base64
import secrets
from dataclasses import dataclass
from typing import Literal, Tuple, Union

from loguru import logger

from ssrelay.exceptions import ValidationError

# 菜单序号 1-6 与下列顺序一一对应
METHODS = (
    "2022-blake3-aes-128-gcm",
    "2022-blake3-aes-256-gcm",
    "2022-blake3-chacha20-poly1305",
    "aes-128-gcm",
    "aes-256-gcm",
    "chacha20-ietf-poly1305",
)
DEFAULT_METHOD = METHODS[0]

# 菜单序号 1-3
OBFS_MODES = ("none", "http", "tls")
DEFAULT_OBFS_CHOICE = 2
DEFAULT_OBFS_HOST = "www.speedtest.cn"
DEFAULT_NODE_NAME = "SingBox_Server_Auto"

ObfsMode = Literal["none", "http", "tls"]

Choice = Union[int, str, None]


@dataclass(frozen=True)
class ServerParams:
    port: int
    password: str
    server_address: str
    method: str = DEFAULT_METHOD
    obfs_mode: ObfsMode = "http"
    obfs_host: str | None = DEFAULT_OBFS_HOST
    node_name: str = DEFAULT_NODE_NAME

    def __post_init__(self):
        object.__setattr__(self, "port", validate_port(self.port))
        if not self.password:
            raise ValidationError("密码不能为空")
        if not self.server_address:
            raise ValidationError("服务器地址不能为空")
        if self.method not in METHODS:
            raise ValidationError(f"不支持的加密方式 - method={self.method}")
        if self.obfs_mode not in OBFS_MODES:
            raise ValidationError(f"不支持的混淆模式 - obfs_mode={self.obfs_mode}")
        # obfs_host 当且仅当启用混淆时存在
        if self.obfs_mode == "none" and self.obfs_host:
            raise ValidationError("未启用混淆时不应设置混淆域名")
        if self.obfs_mode != "none" and not self.obfs_host:
            raise ValidationError(f"启用混淆时必须设置混淆域名 - obfs_mode={self.obfs_mode}")

    @property
    def obfs_enabled(self) -> bool:
        return self.obfs_mode != "none"


def generate_password() -> str:
    """16 characters of the standard base64 alphabet.

    12 random bytes encode to exactly 16 base64 characters without padding,
    so every position is drawn uniformly and nothing has to be truncated.
    """
    return base64.b64encode(secrets.token_bytes(12)).decode("ascii")


def _is_ascii_digits(s: str) -> bool:
    # str.isdigit also accepts superscripts that int() rejects
    return s.isascii() and s.isdigit()


def validate_port(value: int | str | None) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"端口必须是整数 - port={value!r}")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError("端口不能为空")
        if not _is_ascii_digits(value):
            raise ValidationError(f"端口必须是整数 - port={value!r}")
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError(f"端口必须是整数 - port={value!r}")
    if not 1 <= value <= 65535:
        raise ValidationError(f"端口超出范围 1-65535 - port={value}")
    return value


def _as_index(choice: Choice) -> int | None:
    if isinstance(choice, bool):
        return None
    if isinstance(choice, int):
        return choice
    if isinstance(choice, str) and _is_ascii_digits(choice.strip()):
        return int(choice.strip())
    return None


def select_method(choice: Choice) -> str:
    index = _as_index(choice)
    if index is None or not 1 <= index <= len(METHODS):
        logger.warning(f"无效的加密方式选项，使用默认值 - choice={choice!r} method={DEFAULT_METHOD}")
        return DEFAULT_METHOD
    return METHODS[index - 1]


def select_obfuscation(choice: Choice, host: str | None = None) -> Tuple[ObfsMode, str | None]:
    if choice is None or (isinstance(choice, str) and not choice.strip()):
        choice = DEFAULT_OBFS_CHOICE

    index = _as_index(choice)
    if index == 1:
        return "none", None
    if index == 2:
        return "http", host or DEFAULT_OBFS_HOST
    if index == 3:
        return "tls", host or DEFAULT_OBFS_HOST

    logger.warning(f"无效的混淆选项，关闭混淆 - choice={choice!r}")
    return "none", None
