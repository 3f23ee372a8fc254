#!/usr/bin/env python
"""
离线调度演练

使用方式:
    python scripts/dry_run.py --pods pods.json --nodes nodes.json
    python scripts/dry_run.py --pods pods.json --nodes nodes.json --edf-args '{"defaultDurationSeconds": 300}'
"""
import argparse
import json
import sys

from kubesched.config import get_settings
from kubesched.dryrun import load_manifests, run_dry_run
from kubesched.errors import PluginConfigError
from logging_config import setup_logging


def main():
    parser = argparse.ArgumentParser(description="EDF + GPU 感知调度离线演练")
    parser.add_argument("--pods", required=True, help="Pod manifest（List / 数组 / 单个对象）")
    parser.add_argument("--nodes", required=True, help="Node manifest")
    parser.add_argument("--edf-args", default=None, help="EDFQueueSort 插件参数 (JSON)")
    parser.add_argument("--gpu-args", default=None, help="GPUAware 插件参数 (JSON)")
    parser.add_argument("--loglevel", default=None, help="日志级别")

    args = parser.parse_args()

    # 配置日志
    setup_logging(level=args.loglevel, log_format="console")

    try:
        reports = run_dry_run(
            load_manifests(args.pods),
            load_manifests(args.nodes),
            edf_args=json.loads(args.edf_args) if args.edf_args else None,
            gpu_args=json.loads(args.gpu_args) if args.gpu_args else None,
        )
    except PluginConfigError as e:
        print(f"invalid plugin args: {e}", file=sys.stderr)
        return 2

    json.dump(
        {
            "config": get_settings().display_config(),
            "placements": [r.to_dict() for r in reports],
        },
        sys.stdout,
        indent=2,
        ensure_ascii=False,
    )
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
