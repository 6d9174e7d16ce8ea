# -*- coding: utf-8 -*-
# Time       : 2026/10/19 11:45
# Author     : QIN2DIM
# Github     : https://github.com/QIN2DIM
# Description: sing-box Shadowsocks 一键部署
from __future__ import annotations

import argparse
import getpass
import sys
from contextlib import suppress

from loguru import logger

from ssrelay import probes, prompts, system
from ssrelay.exceptions import ConfigWriteError, NetworkError, ScaffoldError
from ssrelay.params import (
    ServerParams,
    generate_password,
    select_method,
    select_obfuscation,
    validate_port,
)
from ssrelay.server_config import build_server_config, write_server_config
from ssrelay.share_link import encode_uri, parse_uri
from ssrelay.toolbox import Project, init_log

TEMPLATE_PRINT_URI = """
\033[36m--> Shadowsocks 分享链接\033[0m
{uri}
"""

TEMPLATE_PRINT_PARAMS = """
\033[36m--> 节点参数\033[0m
# 名称：{node_name}
# 地址：{server_address}
# 端口：{port}
# 加密：{method}
# 密码：{password}
# 混淆：{obfs_mode} {obfs_host}
"""


def collect_params(args: argparse.Namespace) -> ServerParams:
    """命令行已给出的参数不再交互询问"""
    port = validate_port(args.port) if args.port is not None else prompts.ask_port()
    method = select_method(args.method) if args.method is not None else prompts.ask_method()

    if args.obfs is not None:
        obfs_mode, obfs_host = select_obfuscation(args.obfs, args.host)
    else:
        obfs_mode, obfs_host = prompts.ask_obfuscation()

    if method.startswith("2022-blake3-"):
        logger.warning(
            f"{method} 要求 base64 编码的 16/32 字节密钥，自动生成的 16 位密码可能被 sing-box 拒绝"
        )
    node_name = args.name or prompts.ask_node_name()
    server_address = args.address or probes.detect_public_ip() or prompts.ask_server_address()

    return ServerParams(
        port=port,
        password=generate_password(),
        server_address=server_address,
        method=method,
        obfs_mode=obfs_mode,
        obfs_host=obfs_host,
        node_name=node_name,
    )


def save_client_uri(uri: str, project: Project):
    try:
        project.client_uri.write_text(uri + "\n", encoding="utf8")
    except OSError as err:
        raise ConfigWriteError(f"无法保存分享链接 - path={project.client_uri} error={err}") from err


def show_params(server_params: ServerParams):
    fields = dict(server_params.__dict__, obfs_host=server_params.obfs_host or "")
    print(TEMPLATE_PRINT_PARAMS.format(**fields))


class Scaffold:
    @staticmethod
    def install(params: argparse.Namespace, project: Project | None = None):
        """
        1. 检查运行环境，安装依赖
        2. 下载 sing-box
        3. 交互式收集节点参数并生成服务端配置
        4. 注册并启动系统服务，放行端口
        5. 输出分享链接
        """
        project = project or Project()
        system.check_environment()

        manager = system.detect_package_manager()
        system.install_dependencies(manager)
        arch = system.detect_arch()

        version = params.version or probes.fetch_latest_version()
        if not version:
            raise NetworkError("无法获取 sing-box 最新版本号，可通过 --version 手动指定")

        server_params = collect_params(params)
        if system.is_port_in_used(server_params.port, proto="tcp"):
            logger.warning(f"端口已被占用，服务可能无法启动 - port={server_params.port}")

        project.init_workstation()
        service = system.SingBoxService.build_from_template(project.singbox_service)
        service.stop()
        system.download_singbox(version, arch, project.singbox_executable)

        logger.info("正在生成服务端配置")
        write_server_config(build_server_config(server_params), project.server_config)

        logger.info("正在部署系统服务")
        template = system.TEMPLATE_SERVICE.format(
            exec_start=f"{project.singbox_executable} run -c {project.server_config}",
            working_directory=f"{project.workstation}",
        )
        service = system.SingBoxService.build_from_template(project.singbox_service, template)
        service.start()

        if params.skip_firewall:
            logger.info("已跳过防火墙配置")
        else:
            system.Firewall.open_port(server_params.port)

        logger.info("正在检查服务状态")
        (response, text) = service.status()
        if response is not True:
            logger.warning(f"服务未处于运行状态 - status={text}")

        uri = encode_uri(server_params)
        save_client_uri(uri, project)
        show_params(server_params)
        print(TEMPLATE_PRINT_URI.format(uri=uri))

    @staticmethod
    def remove(params: argparse.Namespace, project: Project | None = None):
        project = project or Project()
        system.check_environment()
        service = system.SingBoxService.build_from_template(project.singbox_service)
        service.remove(project.workstation, project.singbox_executable)

    @staticmethod
    def check(params: argparse.Namespace, project: Project | None = None):
        project = project or Project()

        (_, text) = system.SingBoxService.build_from_template(project.singbox_service).status()
        logger.info(f"服务状态 - status={text}")

        if not project.client_uri.exists():
            logger.error(f"❌ 分享链接不存在 - path={project.client_uri}")
            return
        uri = project.client_uri.read_text(encoding="utf8").strip()
        server_params = parse_uri(uri)
        show_params(server_params)
        print(TEMPLATE_PRINT_URI.format(uri=uri))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="sing-box Shadowsocks Scaffold (Python3.8+)")
    subparsers = parser.add_subparsers(dest="command")

    install_parser = subparsers.add_parser("install", help="Automatically install and run")
    install_parser.add_argument("-p", "--port", type=str, help="监听端口，否则需要在运行脚本后以交互的形式输入")
    install_parser.add_argument("-m", "--method", type=str, help="加密方式序号 1-6")
    install_parser.add_argument("-o", "--obfs", type=str, help="混淆模式序号 1=none 2=http 3=tls")
    install_parser.add_argument("--host", type=str, help="混淆域名")
    install_parser.add_argument("-n", "--name", type=str, help="节点名称")
    install_parser.add_argument("-a", "--address", type=str, help="服务器地址，默认自动检测公网 IP")
    install_parser.add_argument("--version", type=str, help="指定 sing-box 版本，例如 1.8.0")
    install_parser.add_argument("--skip-firewall", action="store_true", help="不修改防火墙规则")

    subparsers.add_parser("remove", help="Uninstall services and associated caches")
    subparsers.add_parser("check", help="Print the share link")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    command = args.command

    init_log(stdout_level="INFO", project=Project() if getpass.getuser() == "root" else None)

    with suppress(KeyboardInterrupt):
        try:
            if command == "install":
                Scaffold.install(params=args)
            elif command == "remove":
                Scaffold.remove(params=args)
            elif command == "check":
                Scaffold.check(params=args)
            else:
                parser.print_help()
        except ScaffoldError as err:
            logger.error(f"{err}")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
