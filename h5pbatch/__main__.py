"""H5P 批次匯出工具 - 套件入口點

支援以 `python -m h5pbatch` 方式啟動。
"""

import sys


def main() -> None:
    """主入口點"""
    import os

    # 強制使用 UTF-8 編碼 (Windows 環境修復)，避免 ✓/✗ 等字元造成 UnicodeEncodeError
    if sys.platform == "win32":
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8", errors="replace")
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding="utf-8", errors="replace")
        os.environ["PYTHONIOENCODING"] = "utf-8"

    from h5pbatch.cli.main import main as cli_main

    sys.exit(cli_main())


if __name__ == "__main__":
    main()
