# -*- coding: utf-8 -*-
# Time       : 2026/10/19 13:02
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description:
from __future__ import annotations

from typing import List

import pytest
from loguru import logger

from ssrelay.params import ServerParams


@pytest.fixture
def warnings() -> List[str]:
    """Messages of every WARNING record emitted during the test"""
    records = []
    sink_id = logger.add(lambda m: records.append(m.record["message"]), level="WARNING")
    yield records
    logger.remove(sink_id)


@pytest.fixture
def scenario() -> ServerParams:
    return ServerParams(
        port=8443,
        password="abcdEFGH12345678",
        method="2022-blake3-aes-128-gcm",
        obfs_mode="http",
        obfs_host="www.bing.com",
        server_address="203.0.113.5",
        node_name="MyNode",
    )
