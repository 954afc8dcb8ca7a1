from __future__ import annotations

from importlib import metadata


def _version(pkg: str) -> str:
    try:
        return metadata.version(pkg)
    except metadata.PackageNotFoundError:
        return "unknown"


def run_selftest() -> bool:
    """
    Lightweight import/dep check; no network calls.
    """
    try:
        import httpx  # noqa: F401
        print(f"querywire selftest: httpx {_version('httpx')}")
    except ImportError as exc:
        print(f"querywire selftest: missing httpx ({exc})")
        return False

    try:
        import structlog  # noqa: F401
        print(f"querywire selftest: structlog {_version('structlog')}")
    except ImportError as exc:
        print(f"querywire selftest: missing structlog ({exc})")
        return False

    try:
        from querywire.client import CompletionClient  # noqa: F401
        from querywire.health import ProxyHealthProbe  # noqa: F401
        from querywire.proxy import QueryProxyClient  # noqa: F401
        from querywire.types import CompletionRequest  # noqa: F401
        print("querywire selftest: core imports ok")
    except ImportError as exc:
        print(f"querywire selftest: import failed ({exc})")
        return False

    print("querywire selftest: ok")
    return True


if __name__ == "__main__":
    run_selftest()
