# -*- coding: utf-8 -*-
# Time       : 2026/10/19 10:52
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description: 外部网络查询：最新版本号与本机公网 IP
from __future__ import annotations

import ipaddress
from typing import Sequence

import requests
from loguru import logger

RELEASES_API = "https://api.github.com/repos/SagerNet/sing-box/releases/latest"

# 依次尝试，首个返回合法 IP 的服务胜出
IP_ENDPOINTS = (
    "https://api.ipify.org",
    "https://ifconfig.me/ip",
    "https://ipinfo.io/ip",
    "https://icanhazip.com",
)

TIMEOUT = 10


def fetch_latest_version(api: str = RELEASES_API) -> str:
    """Return the latest sing-box release as ``1.x.y`` or an empty string"""
    try:
        resp = requests.get(api, headers={"Accept": "application/vnd.github+json"}, timeout=TIMEOUT)
        resp.raise_for_status()
        tag = resp.json().get("tag_name", "")
    except (requests.RequestException, ValueError) as err:
        logger.warning(f"获取最新版本失败 - api={api} error={err}")
        return ""
    return tag.strip().lstrip("v")


def _is_ip(token: str) -> bool:
    try:
        ipaddress.ip_address(token)
    except ValueError:
        return False
    return True


def detect_public_ip(endpoints: Sequence[str] = IP_ENDPOINTS) -> str:
    for url in endpoints:
        try:
            resp = requests.get(url, timeout=TIMEOUT)
            resp.raise_for_status()
        except requests.RequestException as err:
            logger.debug(f"公网 IP 查询失败 - url={url} error={err}")
            continue
        token = resp.text.strip()
        if _is_ip(token):
            logger.info(f"检测到本机公网 IP - ip={token}")
            return token
        logger.debug(f"公网 IP 查询返回了无法识别的内容 - url={url} text={token[:64]!r}")
    return ""
