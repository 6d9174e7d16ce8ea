# -*- coding: utf-8 -*-
# Time       : 2026/10/19 10:24
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description:
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from loguru import logger

from ssrelay.exceptions import ConfigWriteError
from ssrelay.params import ServerParams

INBOUND_TAG = "ss-in"
LISTEN_ADDRESS = "0.0.0.0"

# 两条静态 DNS，均经由 direct 出站解析
DNS_SERVERS = (
    {"tag": "dns-google", "address": "8.8.8.8", "detour": "direct"},
    {"tag": "dns-cloudflare", "address": "1.1.1.1", "detour": "direct"},
)


def build_inbound(params: ServerParams) -> Dict[str, Any]:
    inbound = {
        "type": "shadowsocks",
        "tag": INBOUND_TAG,
        "listen": LISTEN_ADDRESS,
        "listen_port": params.port,
        "method": params.method,
        "password": params.password,
    }
    if params.obfs_enabled:
        inbound["obfs"] = {"mode": params.obfs_mode, "host": params.obfs_host}
    inbound["udp_over_tcp"] = True
    inbound["multiplex"] = {"enabled": True}
    return inbound


def build_server_config(params: ServerParams) -> Dict[str, Any]:
    """
    Config document consumed by sing-box.
    https://sing-box.sagernet.org/configuration/inbound/shadowsocks/

    Key order is kept as written so the file on disk reads top-down:
    log, dns, inbounds, outbounds, route.
    """
    return {
        "log": {"level": "info", "timestamp": True},
        "dns": {"servers": [dict(s) for s in DNS_SERVERS]},
        "inbounds": [build_inbound(params)],
        "outbounds": [{"type": "direct", "tag": "direct"}, {"type": "block", "tag": "block"}],
        "route": {"rules": [{"inbound": [INBOUND_TAG], "outbound": "direct"}]},
    }


def dumps(document: Dict[str, Any]) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def write_server_config(document: Dict[str, Any], sp: Path):
    try:
        sp.parent.mkdir(parents=True, exist_ok=True)
        sp.write_text(dumps(document) + "\n", encoding="utf8")
    except OSError as err:
        raise ConfigWriteError(f"无法写入服务端配置文件 - save_path={sp} error={err}") from err
    logger.info(f"保存服务端配置文件 - save_path={sp}")
