# -*- coding: utf-8 -*-
# Time       : 2026/10/19 10:37
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description: Shadowsocks 分享链接
from __future__ import annotations

import base64
import binascii
from typing import Dict
from urllib.parse import quote, unquote

from ssrelay.exceptions import ValidationError
from ssrelay.params import ServerParams

SCHEME = "ss://"


def url_encode(s: str) -> str:
    """Escape everything outside the unreserved set ``A-Za-z0-9-_.~``; space -> %20"""
    return quote(s, safe="")


def _format_host(host: str) -> str:
    if ":" in host and not host.startswith("["):
        return f"[{host}]"
    return host


def encode_credential(params: ServerParams) -> str:
    credential = f"{params.method}:{params.password}@{_format_host(params.server_address)}:{params.port}"
    return base64.b64encode(credential.encode("utf8")).decode("ascii")


def encode_uri(params: ServerParams) -> str:
    """
    ss://<base64(method:password@host:port)>[;plugin=obfs;obfs-mode=M;obfs-host=H]#<name>

    The plugin fragment stays in cleartext outside the base64 segment.
    This is the pre-SIP002 layout that older obfs-aware clients parse.
    """
    uri = SCHEME + encode_credential(params)
    if params.obfs_enabled:
        uri += f";plugin=obfs;obfs-mode={params.obfs_mode};obfs-host={url_encode(params.obfs_host)}"
    return f"{uri}#{url_encode(params.node_name)}"


def _b64decode(segment: str) -> str:
    missing_padding = len(segment) % 4
    if missing_padding:
        segment += "=" * (4 - missing_padding)
    try:
        return base64.b64decode(segment, validate=True).decode("utf8")
    except (binascii.Error, UnicodeDecodeError) as err:
        raise ValidationError(f"分享链接中的 base64 段无法解码 - {err}") from err


def _parse_plugin_opts(fragment: str) -> Dict[str, str]:
    opts = {}
    for part in fragment.split(";"):
        if not part:
            continue
        key, sep, value = part.partition("=")
        if not sep:
            raise ValidationError(f"无法识别的插件参数 - part={part!r}")
        opts[key] = unquote(value)
    return opts


def parse_uri(uri: str) -> ServerParams:
    if not uri.startswith(SCHEME):
        raise ValidationError(f"不是 Shadowsocks 分享链接 - uri={uri[:16]!r}")

    body, _, name = uri[len(SCHEME) :].partition("#")
    segment, _, fragment = body.partition(";")

    credential = _b64decode(segment)
    userinfo, sep, hostport = credential.rpartition("@")
    method, sep_, password = userinfo.partition(":")
    host, sep__, port = hostport.rpartition(":")
    if not (sep and sep_ and sep__):
        raise ValidationError("分享链接缺少 method:password@host:port 结构")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]

    opts = _parse_plugin_opts(fragment)
    if opts and opts.get("plugin") != "obfs":
        raise ValidationError(f"不支持的插件 - plugin={opts.get('plugin')}")

    return ServerParams(
        port=port,
        password=password,
        server_address=host,
        method=method,
        obfs_mode=opts.get("obfs-mode", "none"),
        obfs_host=opts.get("obfs-host"),
        node_name=unquote(name),
    )
