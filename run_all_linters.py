#!/usr/bin/env python3
"""統一的檢查腳本，依序執行格式化、靜態分析與單元測試。

預設為檢查模式：
1. Black 格式化檢查
2. isort 匯入排序檢查
3. Ruff 靜態檢查
4. Pylint 靜態分析（app / core / infrastructure）
5. pytest 單元測試

加上 `--fix` 時，Black、isort、Ruff 會直接修正檔案。
"""

import argparse
from pathlib import Path
import subprocess
import sys

ROOT = Path(__file__).parent
PACKAGES = ["app", "core", "infrastructure"]


def build_commands(fix: bool) -> list[tuple[list[str], str]]:
    py = [sys.executable, "-m"]
    if fix:
        return [
            (py + ["black", "."], "Black 格式化"),
            (py + ["isort", "."], "isort 匯入排序"),
            (py + ["ruff", "check", ".", "--fix"], "Ruff 自動修正"),
        ]
    return [
        (py + ["black", ".", "--check"], "Black 格式化檢查"),
        (py + ["isort", ".", "--check-only"], "isort 匯入排序檢查"),
        (py + ["ruff", "check", "."], "Ruff 靜態檢查"),
        (py + ["pylint", *PACKAGES], "Pylint 靜態分析"),
        (py + ["pytest", "-q"], "pytest 單元測試"),
    ]


def run_command(cmd: list[str], description: str) -> tuple[bool, str]:
    """執行命令，回傳 (是否成功, 合併輸出)。"""
    print(f"\n{'=' * 60}\n{description}: {' '.join(cmd[2:])}\n{'=' * 60}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False, cwd=ROOT)
    except OSError as e:
        print(f"❌ 無法執行: {e}")
        return False, str(e)

    output = (result.stdout + result.stderr).strip()
    success = result.returncode == 0
    print("✅ 成功" if success else f"❌ 失敗 (exit {result.returncode})")
    if output:
        print(output)
    return success, output


def main() -> None:
    parser = argparse.ArgumentParser(description="執行 linter 與測試")
    parser.add_argument("--fix", action="store_true", help="直接修正格式與可自動修正的問題")
    args = parser.parse_args()

    results = [(desc, *run_command(cmd, desc)) for cmd, desc in build_commands(args.fix)]

    print(f"\n{'=' * 60}\n總結報告\n{'=' * 60}")
    for desc, success, _ in results:
        print(f"{desc}: {'✅ 通過' if success else '❌ 失敗'}")

    failed = [desc for desc, success, _ in results if not success]
    print(f"\n整體結果: {'❌ 失敗項目: ' + ', '.join(failed) if failed else '✅ 全部通過'}")
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
