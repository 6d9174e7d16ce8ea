# -*- coding: utf-8 -*-
# Time       : 2026/10/19 11:31
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description: 交互式输入
from __future__ import annotations

from typing import Callable, Tuple

from ssrelay.exceptions import ValidationError
from ssrelay.params import (
    DEFAULT_NODE_NAME,
    DEFAULT_OBFS_CHOICE,
    DEFAULT_OBFS_HOST,
    METHODS,
    ObfsMode,
    select_method,
    select_obfuscation,
    validate_port,
)

Reader = Callable[[str], str]

MENU_METHOD = "\n".join(
    ["\033[36m--> 选择加密方式\033[0m"]
    + [f"  {i}. {m}" + ("  (默认)" if i == 1 else "") for i, m in enumerate(METHODS, start=1)]
)

MENU_OBFS = """\033[36m--> 选择混淆模式\033[0m
  1. none
  2. http  (默认)
  3. tls"""


def ask_port(reader: Reader = input) -> int:
    return validate_port(reader("> 监听端口 [1-65535]："))


def ask_method(reader: Reader = input) -> str:
    print(MENU_METHOD)
    choice = reader("> 加密方式 [默认 1]：").strip() or "1"
    return select_method(choice)


def ask_obfuscation(reader: Reader = input) -> Tuple[ObfsMode, str | None]:
    print(MENU_OBFS)
    choice = reader(f"> 混淆模式 [默认 {DEFAULT_OBFS_CHOICE}]：").strip() or f"{DEFAULT_OBFS_CHOICE}"
    mode, _ = select_obfuscation(choice)
    if mode == "none":
        return mode, None
    host = reader(f"> 混淆域名 [默认 {DEFAULT_OBFS_HOST}]：").strip()
    return select_obfuscation(choice, host)


def ask_node_name(reader: Reader = input) -> str:
    return reader(f"> 节点名称 [默认 {DEFAULT_NODE_NAME}]：").strip() or DEFAULT_NODE_NAME


def ask_server_address(reader: Reader = input) -> str:
    address = reader("> 未能自动获取公网 IP，请手动输入服务器地址：").strip()
    if not address:
        raise ValidationError("服务器地址不能为空")
    return address
