# -*- coding: utf-8 -*-
# Time       : 2026/10/19 13:41
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description:
from __future__ import annotations

import dataclasses
import json

import pytest

from ssrelay.exceptions import ConfigWriteError
from ssrelay.server_config import build_server_config, write_server_config


def test_document_layout(scenario):
    doc = build_server_config(scenario)
    assert list(doc) == ["log", "dns", "inbounds", "outbounds", "route"]

    (inbound,) = doc["inbounds"]
    assert inbound["type"] == "shadowsocks"
    assert inbound["listen"] == "0.0.0.0"
    assert inbound["listen_port"] == 8443
    assert inbound["method"] == "2022-blake3-aes-128-gcm"
    assert inbound["password"] == scenario.password
    assert inbound["obfs"] == {"mode": "http", "host": "www.bing.com"}
    assert inbound["udp_over_tcp"] is True
    assert inbound["multiplex"] == {"enabled": True}

    assert [o["tag"] for o in doc["outbounds"]] == ["direct", "block"]
    assert doc["route"]["rules"] == [{"inbound": [inbound["tag"]], "outbound": "direct"}]
    servers = doc["dns"]["servers"]
    assert len(servers) == 2
    assert all(s["detour"] == "direct" for s in servers)


def test_no_obfs_block(scenario):
    params = dataclasses.replace(scenario, obfs_mode="none", obfs_host=None)
    (inbound,) = build_server_config(params)["inbounds"]
    assert "obfs" not in inbound


@pytest.mark.parametrize("mode", ["http", "tls"])
def test_obfs_block_follows_mode(scenario, mode):
    params = dataclasses.replace(scenario, obfs_mode=mode)
    (inbound,) = build_server_config(params)["inbounds"]
    assert inbound["obfs"]["mode"] == mode


def test_write_server_config(scenario, tmp_path):
    params = dataclasses.replace(scenario, node_name='节点 "1"', obfs_host="a\"b\\c")
    sp = tmp_path.joinpath("sing-box", "config.json")
    write_server_config(build_server_config(params), sp)
    loaded = json.loads(sp.read_text(encoding="utf8"))
    assert loaded == build_server_config(params)
    assert loaded["inbounds"][0]["obfs"]["host"] == "a\"b\\c"


def test_write_failure_is_fatal(scenario, tmp_path):
    blocker = tmp_path.joinpath("blocker")
    blocker.write_text("")
    with pytest.raises(ConfigWriteError):
        write_server_config(build_server_config(scenario), blocker.joinpath("config.json"))
