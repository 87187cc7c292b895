"""
VirtWatch Agent 命令行入口模块。

提供 CLI 命令：run（前台运行 Agent）、check（验证配置文件）和 collect（执行单轮采集）。
"""
import asyncio
import logging
import signal
import sys

import click

from virtwatch_agent import __version__
from virtwatch_agent.config import load_config
from virtwatch_agent.errors import VirtwatchError


@click.group(invoke_without_command=True)
@click.option("--config", "-c", default="/etc/virtwatch/agent.yaml", help="Config file path")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, config, verbose):
    """VirtWatch Agent - libvirt 虚拟机指标采集代理。"""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # 未指定子命令时，显示基本信息
    if ctx.invoked_subcommand is None:
        click.echo(f"VirtWatch Agent v{__version__}")
        click.echo(f"Config: {config}")
        click.echo("Use --help for available commands")


def _load_or_exit(config_path):
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def run(ctx):
    """以前台模式运行 Agent。"""
    logger = logging.getLogger("virtwatch-agent")
    cfg = _load_or_exit(ctx.obj["config_path"])

    logger.info(f"Starting VirtWatch Agent v{__version__}")

    from virtwatch_agent.runner import CollectorAgent

    agent = CollectorAgent(cfg)

    loop = asyncio.new_event_loop()

    # 注册信号处理，当前采集轮结束后优雅关闭
    def _shutdown(sig):
        logger.info(f"Received {sig.name}, shutting down...")
        agent.stop()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _shutdown, sig)

    try:
        loop.run_until_complete(agent.start())
    except Exception:
        logger.exception("Agent crashed")
        sys.exit(1)
    finally:
        loop.close()


@cli.command()
@click.pass_context
def check(ctx):
    """验证配置文件是否正确。"""
    config_path = ctx.obj["config_path"]
    try:
        cfg = load_config(config_path)
        click.echo(f"✅ Config OK: {config_path}")
        click.echo(f"   Libvirt: {cfg.libvirt.uri} ({'read-only' if cfg.libvirt.read_only else 'read-write'})")
        click.echo(f"   Pushgateway: {cfg.pushgateway.url} (job={cfg.pushgateway.job})")
        click.echo(f"   Metrics interval: {cfg.metrics.interval}s")
    except Exception as e:
        click.echo(f"❌ Config error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--dry-run", is_flag=True, help="Print records as JSON lines instead of pushing")
@click.pass_context
def collect(ctx, dry_run):
    """执行单轮采集后退出。"""
    cfg = _load_or_exit(ctx.obj["config_path"])

    from virtwatch_agent.runner import CollectorAgent
    from virtwatch_agent.sink import StdoutSink

    agent = CollectorAgent(cfg, sink=StdoutSink() if dry_run else None)
    try:
        agent.collect_once()
    except VirtwatchError as e:
        click.echo(f"Error: {e.message}" + (f" ({e.detail})" if e.detail else ""), err=True)
        sys.exit(1)
    finally:
        # 单轮推送后保留 Pushgateway 上的指标组，只关闭 libvirt 连接
        agent.connection.close()


def main():
    """CLI 入口函数。"""
    cli()


if __name__ == "__main__":
    main()
