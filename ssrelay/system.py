# -*- coding: utf-8 -*-
# Time       : 2026/10/19 11:08
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description: 与操作系统打交道的部分：包管理器、下载、systemd、防火墙
from __future__ import annotations

import os
import platform
import shutil
import socket
import subprocess
import sys
import tarfile
import tempfile
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Literal, Sequence, Tuple

import requests
from loguru import logger

from ssrelay.exceptions import (
    ConfigWriteError,
    EnvironmentNotSupported,
    NetworkError,
    ServiceError,
)

URL = "https://github.com/SagerNet/sing-box/releases/download/v{version}/sing-box-{version}-linux-{arch}.tar.gz"

TEMPLATE_SERVICE = """
[Unit]
Description=sing-box service
Documentation=https://sing-box.sagernet.org
After=network.target nss-lookup.target

[Service]
User=root
WorkingDirectory={working_directory}
CapabilityBoundingSet=CAP_NET_ADMIN CAP_NET_BIND_SERVICE CAP_NET_RAW
AmbientCapabilities=CAP_NET_ADMIN CAP_NET_BIND_SERVICE CAP_NET_RAW
ExecStart={exec_start}
ExecReload=/bin/kill -HUP $MAINPID
Restart=on-failure
RestartSec=10
LimitNOFILE=infinity

[Install]
WantedBy=multi-user.target
"""

# uname -m -> sing-box release arch
ARCH_MAP = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "armv7",
    "armv7": "armv7",
    "i386": "386",
    "i686": "386",
    "s390x": "s390x",
}

DEPENDENCIES = ("curl", "tar", "ca-certificates")

PACKAGE_MANAGERS: Dict[str, List[str]] = {
    "apt-get": ["apt-get", "install", "-y"],
    "dnf": ["dnf", "install", "-y"],
    "yum": ["yum", "install", "-y"],
}

_DEBIAN_LIKE = {"debian", "ubuntu"}
_RHEL_LIKE = {"rhel", "centos", "fedora", "rocky", "almalinux", "ol"}


EXIT_NOT_FOUND = 127


def run(cmd: Sequence[str], **kwargs) -> subprocess.CompletedProcess:
    """A missing executable is reported like the shell does: exit code 127"""
    try:
        return subprocess.run(list(cmd), capture_output=True, text=True, **kwargs)
    except OSError as err:
        return subprocess.CompletedProcess(list(cmd), EXIT_NOT_FOUND, stdout="", stderr=f"{err}")


def check_environment():
    if not sys.platform.startswith("linux"):
        raise EnvironmentNotSupported("Opps~ 你只能在 Linux 操作系统上运行该脚本")
    if os.geteuid() != 0:
        raise EnvironmentNotSupported("Opps~ 你需要手动切换到 root 用户运行该脚本")
    if not shutil.which("systemctl"):
        raise EnvironmentNotSupported("未检测到 systemd，无法注册系统服务")


def read_os_release(path: Path = Path("/etc/os-release")) -> Dict[str, str]:
    release = {}
    with suppress(OSError):
        for line in path.read_text(encoding="utf8").splitlines():
            key, sep, value = line.partition("=")
            if sep:
                release[key.strip()] = value.strip().strip('"')
    return release


def detect_package_manager(release: Dict[str, str] | None = None) -> str:
    release = read_os_release() if release is None else release
    ids = {release.get("ID", "")} | set(release.get("ID_LIKE", "").split())
    if ids & _DEBIAN_LIKE:
        return "apt-get"
    if ids & _RHEL_LIKE:
        return "dnf" if shutil.which("dnf") else "yum"
    raise EnvironmentNotSupported(f"不支持的操作系统 - id={release.get('ID') or 'unknown'}")


def install_dependencies(manager: str, packages: Sequence[str] = DEPENDENCIES):
    """缺失依赖不会中断安装，只给出警告"""
    logger.info(f"正在安装依赖 - packages={' '.join(packages)}")
    if manager == "apt-get":
        run(["apt-get", "update", "-y"])
    result = run(PACKAGE_MANAGERS[manager] + list(packages))
    if result.returncode != 0:
        logger.warning(
            f"依赖安装失败，继续执行 - manager={manager} stderr={result.stderr.strip()[-200:]}"
        )


def detect_arch(machine: str | None = None) -> str:
    machine = (machine or platform.machine()).lower()
    try:
        return ARCH_MAP[machine]
    except KeyError:
        raise EnvironmentNotSupported(f"不支持的 CPU 架构 - machine={machine}") from None


def is_port_in_used(_port: int, proto: Literal["tcp", "udp"]) -> bool:
    """Check socket UDP/data_gram or TCP/data_stream"""
    proto2type = {"tcp": socket.SOCK_STREAM, "udp": socket.SOCK_DGRAM}
    socket_type = proto2type[proto]
    with suppress(socket.error), socket.socket(socket.AF_INET, socket_type) as s:
        s.bind(("0.0.0.0", _port))
        return False
    return True


def download_singbox(version: str, arch: str, save_path: Path) -> Path:
    url = URL.format(version=version, arch=arch)
    member = f"sing-box-{version}-linux-{arch}/sing-box"
    logger.info(f"正在下载 sing-box - version={version} arch={arch}")
    try:
        with tempfile.TemporaryDirectory() as tmp:
            archive = Path(tmp, "sing-box.tar.gz")
            with requests.get(url, stream=True, timeout=30) as resp:
                resp.raise_for_status()
                with archive.open("wb") as file:
                    for chunk in resp.iter_content(chunk_size=64 * 1024):
                        file.write(chunk)
            with tarfile.open(archive, "r:gz") as tar:
                src = tar.extractfile(member)
                if src is None:
                    raise NetworkError(f"压缩包中缺少可执行文件 - member={member}")
                save_path.parent.mkdir(parents=True, exist_ok=True)
                with src, save_path.open("wb") as dst:
                    shutil.copyfileobj(src, dst)
        save_path.chmod(0o755)
    except requests.RequestException as err:
        raise NetworkError(f"下载失败 - url={url} error={err}") from err
    except (tarfile.TarError, KeyError) as err:
        raise NetworkError(f"压缩包损坏或结构不符 - url={url} error={err}") from err
    except OSError as err:
        raise ConfigWriteError(f"无法写入可执行文件 - save_path={save_path} error={err}") from err

    logger.info(f"下载完毕，已授予执行权限 - save_path={save_path}")
    return save_path


@dataclass
class SingBoxService:
    path: str
    name: str = "sing-box"

    @classmethod
    def build_from_template(cls, path: Path, template: str | None = ""):
        if template:
            try:
                path.write_text(template, encoding="utf8")
            except OSError as err:
                raise ServiceError(f"无法写入系统服务配置 - path={path} error={err}") from err
            cls._systemctl("daemon-reload")
        return cls(path=f"{path}")

    @staticmethod
    def _systemctl(*args: str):
        result = run(["systemctl", *args])
        if result.returncode != 0:
            raise ServiceError(f"systemctl {' '.join(args)} 执行失败 - {result.stderr.strip()}")
        return result

    def start(self):
        """部署服务之前需要先初始化服务端配置并将其写到工作空间"""
        self._systemctl("enable", self.name)
        self._systemctl("restart", self.name)
        logger.info("系统服务已启动")
        logger.info("已设置服务开机自启")

    def stop(self):
        logger.info("停止系统服务")
        run(["systemctl", "stop", self.name])

    def status(self) -> Tuple[bool, str]:
        result = run(["systemctl", "is-active", self.name])
        if result.returncode == EXIT_NOT_FOUND and not result.stdout:
            raise ServiceError(f"无法查询服务状态 - {result.stderr.strip()}")
        text = result.stdout.strip()
        response = False
        if text == "active":
            text = "\033[32m" + text + "\033[0m"
            response = True
        else:
            text = "\033[91m" + (text or "unknown") + "\033[0m"
        return response, text

    def remove(self, workstation: Path, executable: Path):
        logger.info("注销系统服务")
        run(["systemctl", "disable", "--now", self.name])

        logger.info("移除系统服务配置文件")
        with suppress(FileNotFoundError):
            os.remove(self.path)
        run(["systemctl", "daemon-reload"])

        logger.info("移除可执行文件")
        with suppress(FileNotFoundError):
            os.remove(executable)

        logger.info("移除工作空间")
        shutil.rmtree(workstation, ignore_errors=True)


class Firewall:
    """Open a port for TCP and UDP with whichever firewall is active"""

    @staticmethod
    def detect() -> str | None:
        if shutil.which("ufw") and "Status: active" in run(["ufw", "status"]).stdout:
            return "ufw"
        if shutil.which("firewall-cmd") and run(["firewall-cmd", "--state"]).returncode == 0:
            return "firewalld"
        if shutil.which("iptables"):
            return "iptables"
        return None

    @staticmethod
    def commands(backend: str, port: int) -> List[List[str]]:
        if backend == "ufw":
            return [["ufw", "allow", f"{port}/{proto}"] for proto in ("tcp", "udp")]
        if backend == "firewalld":
            return [
                *(
                    ["firewall-cmd", "--permanent", f"--add-port={port}/{proto}"]
                    for proto in ("tcp", "udp")
                ),
                ["firewall-cmd", "--reload"],
            ]
        if backend == "iptables":
            return [
                ["iptables", "-I", "INPUT", "-p", proto, "--dport", f"{port}", "-j", "ACCEPT"]
                for proto in ("tcp", "udp")
            ]
        raise ValueError(f"unknown firewall backend: {backend}")

    @classmethod
    def open_port(cls, port: int):
        backend = cls.detect()
        if backend is None:
            logger.info("未检测到防火墙，跳过端口放行")
            return
        for cmd in cls.commands(backend, port):
            result = run(cmd)
            if result.returncode != 0:
                raise ServiceError(f"防火墙规则添加失败 - cmd={' '.join(cmd)} {result.stderr.strip()}")
        logger.info(f"已放行端口 - firewall={backend} port={port}")
